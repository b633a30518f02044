# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Execution of the external build script, one version at a time.
"""
import subprocess
import sys
from typing import Optional, TextIO
from ..errors import BuildError


class BuildRunner:
    """
    Runs the build script for a single version and forwards its output live.
    """
    def __init__(self,
                 build_script: str,
                 working_dir: Optional[str] = None,
                 stream: Optional[TextIO] = None):
        """
        Initializes the build runner.

        Args:
            build_script (str): Path of the executable invoked as ``<build_script> <version>``.
            working_dir (Optional[str]): Directory the script runs from.
            stream (Optional[TextIO]): Where script output goes. Defaults to ``sys.stdout``.
        """
        self.build_script = build_script
        self.working_dir = working_dir
        self.stream = stream

    def build(self, version: str):
        """
        Runs the build script for ``version`` and waits for it to finish.

        Args:
            version (str): Passed to the script as its only argument.

        Raises:
            BuildError: if the script cannot be started or exits non-zero.
        """
        command = [self.build_script, version]
        out = self.stream or sys.stdout

        print(f"[build {version}] Starting command: {' '.join(command)}")
        try:
            process = subprocess.Popen(
                command,
                cwd=self.working_dir,
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1,
                shell=False
            )
        except OSError as e:
            raise BuildError(version, f"unable to start {self.build_script}: {e}") from e

        with process:
            for line in process.stdout:
                out.write(line)
                out.flush()
        status = process.returncode

        if status != 0:
            raise BuildError(version, f"Build failed with status {status}")
