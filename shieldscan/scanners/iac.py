"""
IaC Adapter
===========
Infrastructure-as-code analysis (Terraform, Kubernetes, Docker, YAML) with semgrep.
"""
from typing import List

from shieldscan.models.finding import ScanCategory
from shieldscan.scanners.base import safe_target
from shieldscan.scanners.semgrep import SemgrepAdapter


class IacAdapter(SemgrepAdapter):
    category = ScanCategory.IAC

    def build_command(self, target_path: str) -> List[str]:
        command = ["semgrep", "scan"]
        command.extend(self._config_args(self.settings.iac_rulesets))
        command.extend(["--json", "--quiet", "--disable-version-check"])
        command.append(safe_target(target_path))
        return command
