"""
SAST Adapter
============
Static application security testing with semgrep.

Test and vendored directories are excluded so findings point at shipped code.
"""
from typing import List

from shieldscan.models.finding import ScanCategory
from shieldscan.scanners.base import safe_target
from shieldscan.scanners.semgrep import SemgrepAdapter


class SastAdapter(SemgrepAdapter):
    category = ScanCategory.SAST

    def build_command(self, target_path: str) -> List[str]:
        command = ["semgrep", "scan"]
        command.extend(self._config_args(self.settings.sast_rulesets))
        for pattern in self.settings.sast_excludes:
            command.append(f"--exclude={pattern}")
        command.extend(["--json", "--quiet", "--disable-version-check"])
        command.append(safe_target(target_path))
        return command
