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

import click

from deferred_functions import create_asgi_app, setup_logging
from deferred_functions._http import create_server
from deferred_functions.exceptions import InvalidTargetException


@click.command()
@click.option("--target", envvar="FUNCTION_TARGET", type=click.STRING, default=None)
@click.option("--host", envvar="HOST", type=click.STRING, default="0.0.0.0")
@click.option("--port", envvar="PORT", type=click.INT, default=8080)
@click.option("--debug", envvar="DEBUG", is_flag=True)
def _cli(target, host, port, debug):
    setup_logging()
    try:
        app = create_asgi_app(target)
    except InvalidTargetException as e:
        raise click.BadParameter(str(e), param_hint="'--target'") from e
    create_server(app, debug).run(host, port)
