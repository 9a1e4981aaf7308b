"""Convergence polling: wait for an instance to reach ``running``."""

import time
from typing import Callable

from .client import ProviderAPI
from .errors import APIError, ConvergenceTimeout
from .types import Instance
from .utils import EventLog

POLL_INTERVAL = 7.0
POLL_ATTEMPTS = 20
GRACE_INTERVALS = 2


class ConvergencePoller:
    """Polls instance status at a fixed interval with a bounded number of attempts.

    Before the first status check it waits ``GRACE_INTERVALS`` intervals so
    the instance can leave the state it was in when create or rebuild
    returned. Worst case blocking time is roughly
    ``(GRACE_INTERVALS + max_attempts - 1) * interval``.

    :param api: Provider client used for status queries
    :param interval: Seconds between polls
    :param max_attempts: Maximum number of status queries
    :param sleep: Sleep function (injected in tests)
    :param events: Event sink
    """

    def __init__(
        self,
        api: ProviderAPI,
        *,
        interval: float = POLL_INTERVAL,
        max_attempts: int = POLL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        events: EventLog | None = None,
    ):
        self.api = api
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.events = events or EventLog()

    def await_running(self, instance_id: int) -> Instance:
        """Block until the instance is running.

        :param instance_id: Provider instance id
        :return: The first snapshot whose status is 'running'
        :raises APIError: On the first failed status query; polling stops
        :raises ConvergenceTimeout: When the attempts run out
        """
        self.sleep(self.interval * GRACE_INTERVALS)

        attempt = 0
        while True:
            try:
                instance = self.api.get_instance(instance_id)
            except APIError as e:
                self.events.error(
                    "Couldn't retrieve status of instance", id=instance_id, cause=str(e)
                )
                raise

            if instance.get("status") == "running":
                return instance

            attempt += 1
            if attempt >= self.max_attempts:
                self.events.warn(
                    "Instance took too long to come online",
                    id=instance.get("id"),
                    label=instance.get("label"),
                    plan=instance.get("type"),
                    ipv4=instance.get("ipv4"),
                    ipv6=instance.get("ipv6"),
                    created=instance.get("created"),
                    status=instance.get("status"),
                )
                raise ConvergenceTimeout(instance_id, attempt, last_seen=instance)

            self.events.debug(
                "Waiting for instance", id=instance_id, status=instance.get("status"), attempt=attempt
            )
            self.sleep(self.interval)
