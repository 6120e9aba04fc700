# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The two entry points served by the host.

``hello_with_promise`` returns its response while a delayed job it started is
still sleeping; ``hello_without_promise`` is the baseline that starts nothing.
"""

import asyncio
import datetime
import logging

from typing import Any, Awaitable, Callable, Dict, Optional

from deferred_functions import http
from deferred_functions.counter import InvocationCounter
from deferred_functions.scheduler import TaskScheduler

DEFERRED_TASK_DELAY_SECONDS = 3.0

IMMEDIATE_RESPONSE_BODY = "Hello from the handler without promise."

logger = logging.getLogger(__name__)

Clock = Callable[[], str]
Sleep = Callable[[float], Awaitable[Any]]


def now() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2020-01-01T00:00:00.000Z."""
    return (
        datetime.datetime.now(datetime.timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def prefix(index: Optional[int] = None, clock: Clock = now) -> str:
    """Log tag for an invocation. Reads the clock on every call."""
    if index is None:
        return f"[{clock()}]"
    return f"[{index}][{clock()}]"


def deferred_task_handler(
    counter: InvocationCounter,
    scheduler: TaskScheduler,
    clock: Clock = now,
    sleep: Sleep = asyncio.sleep,
    delay: float = DEFERRED_TASK_DELAY_SECONDS,
):
    """Builds the handler that answers before its delayed job has run.

    Args:
        counter: Tags each invocation's log lines with a new index.
        scheduler: Runs the delayed job detached from the invocation.
        clock: Source of the timestamps in log lines and in the response body.
        sleep: Coroutine function awaited by the delayed job before it logs.
        delay: Seconds the delayed job waits.

    Returns:
        An async handler taking the platform event and returning a
        ``{"statusCode": ..., "body": ...}`` response.
    """

    async def hello_with_promise(event: Any) -> Dict[str, Any]:
        captured_index = counter.increment()

        logger.info("%s Before requesting a scheduled job.", prefix(captured_index, clock))
        requested = clock()

        async def scheduled_job():
            try:
                await sleep(delay)
                logger.info(
                    "%s This is requested from [%s]",
                    prefix(captured_index, clock),
                    requested,
                )
            except Exception:
                logger.exception(
                    "%s Error after %g seconds", prefix(captured_index, clock), delay
                )

        scheduler.spawn(scheduled_job())
        logger.info("%s After requesting a scheduled job.", prefix(captured_index, clock))

        return {
            "statusCode": 200,
            "body": f"{prefix(captured_index, clock)} requested at [{requested}]",
        }

    return hello_with_promise


invocation_counter = InvocationCounter()
task_scheduler = TaskScheduler()

hello_with_promise = http(deferred_task_handler(invocation_counter, task_scheduler))


@http
async def hello_without_promise(event: Any) -> Dict[str, Any]:
    logger.info("%s No promise in here.", prefix())
    return {"statusCode": 200, "body": IMMEDIATE_RESPONSE_BODY}
