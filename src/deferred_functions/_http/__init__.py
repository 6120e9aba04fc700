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

import logging

from deferred_functions._http.uvicorn_server import UvicornApplication

logger = logging.getLogger(__name__)


class HTTPServer:
    """HTTP server for the ASGI application.

    In debug mode a single uvicorn server is used for simpler debugging. In
    production it tries Gunicorn with Uvicorn workers, and falls back to a
    single uvicorn server when gunicorn is unavailable (e.g. on Windows).
    Every worker process owns its own invocation counter.
    """

    def __init__(self, app, debug, **options):
        """Initialize the HTTP server.

        Args:
            app: The Starlette application to serve
            debug: Whether to run in debug mode
            **options: Additional options to pass to the server
        """
        self.app = app
        self.debug = debug
        self.options = options

        if self.debug:
            self.server_class = UvicornApplication
        else:
            try:
                from deferred_functions._http.asgi import GunicornUvicornApplication

                self.server_class = GunicornUvicornApplication
            except ImportError:
                logger.warning(
                    "Failed to import gunicorn. Falling back to a single uvicorn "
                    "server."
                )
                self.server_class = UvicornApplication

    def run(self, host, port):
        http_server = self.server_class(
            self.app, host, port, self.debug, **self.options
        )
        http_server.run()


def create_server(app, debug, **options):
    """Create an HTTP server for the provided application.

    Args:
        app: The Starlette application to serve
        debug: Whether to run in debug mode
        **options: Additional options to pass to the server

    Returns:
        An HTTPServer instance
    """
    return HTTPServer(app, debug, **options)
