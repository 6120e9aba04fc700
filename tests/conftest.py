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

"""Test fixtures for the deferred function handlers."""

import asyncio
import logging

import pytest

from starlette.testclient import TestClient

from deferred_functions import create_asgi_app
from deferred_functions.counter import InvocationCounter
from deferred_functions.scheduler import TaskScheduler

FROZEN_TIME = "2020-01-01T00:00:00.000Z"


@pytest.fixture
def counter():
    return InvocationCounter()


@pytest.fixture
def scheduler():
    return TaskScheduler()


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_TIME


@pytest.fixture
def stepping_clock():
    """Clock returning T1, T2, ... on successive calls."""

    def _create_clock():
        ticks = iter(range(1, 1000))
        return lambda: "T{}".format(next(ticks))

    return _create_clock


@pytest.fixture
def info_logs(caplog):
    caplog.set_level(logging.INFO)
    return caplog


def _loop_tasks(scheduler):
    loop = asyncio.get_running_loop()
    return [task for task in scheduler._tasks if task.get_loop() is loop]


@pytest.fixture
def drain():
    """Wait until every detached task of a scheduler has finished."""

    async def _drain(scheduler, timeout=2.0):
        await asyncio.wait_for(
            asyncio.gather(*_loop_tasks(scheduler), return_exceptions=True), timeout
        )
        # Let the done callbacks run.
        await asyncio.sleep(0)
        assert scheduler.pending == 0

    return _drain


@pytest.fixture
def tear_down():
    """Cancel a scheduler's detached tasks, as a host shutting down its loop would."""

    async def _tear_down(scheduler):
        tasks = _loop_tasks(scheduler)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await asyncio.sleep(0)

    return _tear_down


@pytest.fixture
def asgi_test_client(monkeypatch):
    """Create a test client for the ASGI application."""
    monkeypatch.delenv("FUNCTION_TARGET", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)

    def _create_client(target=None, functions=None, **kwargs):
        app = create_asgi_app(target=target, functions=functions)
        return TestClient(app, **kwargs)

    return _create_client
