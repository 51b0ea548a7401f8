# -*- coding: utf-8 -*-
"""
================================================================================
Periodic Refresh Ticker
================================================================================
Purpose:
----------------
Keeps the shipment data fresh in the background: the public lookup cache and
the admin listing are both reloaded every 30 seconds.

Each ticker wraps one task (any callable) and runs it on a `schedule`
scheduler. A ticker never runs its task twice at the same time: if a tick
fires while a previous run is still in flight, that tick is skipped. A ticker
can share its in-flight guard with other code: the public refresh uses the
lookup's `refresh_guard`, so a tick that lands during a manual refresh is
skipped too. Errors raised by the task are logged and swallowed so the timer
keeps going; the next tick simply tries again.
----------------
"""

import logging
import threading
import time

import schedule

DEFAULT_INTERVAL_SECONDS = 30


class RefreshTicker:

    def __init__(self, task, interval_seconds=DEFAULT_INTERVAL_SECONDS, name='refresh', scheduler=None, guard=None):
        self.task = task
        self.interval_seconds = interval_seconds
        self.name = name
        self.scheduler = scheduler if scheduler is not None else schedule.Scheduler()
        self.job = None
        self._in_flight = guard if guard is not None else threading.Lock()

    @property
    def in_flight(self):
        return self._in_flight.locked()

    def run_once(self):
        """
        Runs the task unless a previous run is still going.

        Returns:
            bool: True if the task ran and succeeded, False if it was skipped
                  or failed.
        """
        if not self._in_flight.acquire(blocking=False):
            logging.info(f"[{self.name}] Previous run still in flight, skipping this tick.")
            return False
        try:
            self.task()
            return True
        except Exception as e:
            logging.error(f"[{self.name}] Scheduled refresh failed: {e}")
            return False
        finally:
            self._in_flight.release()

    def start(self):
        """Registers the task on the scheduler. Calling it twice keeps one job."""
        if self.job is None:
            self.job = self.scheduler.every(self.interval_seconds).seconds.do(self.run_once)
            logging.info(f"[{self.name}] Scheduled every {self.interval_seconds} seconds.")
        return self.job

    def stop(self):
        if self.job is not None:
            self.scheduler.cancel_job(self.job)
            self.job = None

    def run_pending(self):
        self.scheduler.run_pending()

    def run_forever(self, stop_event=None, poll_seconds=1):
        """Drives the scheduler until `stop_event` is set (or forever without one)."""
        self.start()
        while stop_event is None or not stop_event.is_set():
            self.scheduler.run_pending()
            if stop_event is None:
                time.sleep(poll_seconds)
            else:
                stop_event.wait(poll_seconds)

    def start_background(self, stop_event=None):
        """Runs `run_forever` in a daemon thread and returns the thread."""
        thread = threading.Thread(
            target=self.run_forever,
            kwargs={'stop_event': stop_event},
            name=f"{self.name}-ticker",
            daemon=True
        )
        thread.start()
        return thread


def build_refresh_tickers(lookup, repository, settings, scheduler=None):
    """
    The two background jobs: the public cache refresh and the admin poll.

    Both share one scheduler so a single loop drives them. The public refresh
    is skipped while a manual `force_refresh` holds the lookup's guard.
    """
    scheduler = scheduler if scheduler is not None else schedule.Scheduler()
    interval = settings['refresh_interval_seconds']
    return [
        RefreshTicker(
            lookup.refresh, interval, name='public-refresh', scheduler=scheduler, guard=lookup.refresh_guard
        ),
        RefreshTicker(repository.list_shipments, interval, name='admin-poll', scheduler=scheduler),
    ]
