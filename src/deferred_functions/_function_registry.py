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
import inspect
import os

from typing import Callable, Dict, Mapping, Optional

from deferred_functions.exceptions import InvalidTargetException

FUNCTION_TARGET = "FUNCTION_TARGET"

# REGISTRY_MAP stores the registered handlers.
# Keys are handler names, values are the handler callables.
REGISTRY_MAP: Dict[str, Callable] = {}

# ASYNC_FUNCTIONS records whether a registered handler is a coroutine function.
ASYNC_FUNCTIONS: Dict[str, bool] = {}


def register_function(func: Callable) -> None:
    REGISTRY_MAP[func.__name__] = func
    ASYNC_FUNCTIONS[func.__name__] = inspect.iscoroutinefunction(func)


def get_function_target(target: Optional[str]) -> Optional[str]:
    """Returns the configured target, or None when every handler is served."""
    return target or os.environ.get(FUNCTION_TARGET) or None


def get_user_function(target: str, functions: Mapping[str, Callable]) -> Callable:
    """Returns the handler registered under the target name."""
    if target not in functions:
        raise InvalidTargetException(
            "Function {target} is not defined, expected one of: {names}".format(
                target=target, names=", ".join(sorted(functions)) or "<none>"
            )
        )
    function = functions[target]
    if not callable(function):
        raise InvalidTargetException(
            "The function defined as {target} needs to be of type function. "
            "Got: invalid type {target_type}".format(
                target=target, target_type=type(function)
            )
        )
    return function


def is_async_func(func_name: str) -> bool:
    """Returns True if the handler was registered as a coroutine function."""
    return ASYNC_FUNCTIONS.get(func_name, False)
