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

import asyncio
import logging

from typing import Any, Coroutine, Set

from deferred_functions.exceptions import SchedulerException

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Runs coroutines as detached tasks on the running event loop.

    ``spawn`` returns as soon as the task is created. The caller gets no handle
    back, so a detached task can be neither awaited nor cancelled by the code
    that started it. If the host tears the loop down first, the task is
    cancelled and simply never observed to finish.
    """

    def __init__(self):
        # The event loop only keeps weak references to its tasks.
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of detached tasks that have not finished yet."""
        return len(self._tasks)

    def spawn(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            coroutine.close()
            raise SchedulerException(
                "Detached tasks can only be spawned from a running event loop"
            ) from e

        task = loop.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Detached task %s failed", task.get_name(), exc_info=error
            )
