"""Planning engine backed by the Terraform CLI."""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..addresses import Address
from ..config import terraform_environment
from ..diagnostics import Diagnostic, Diagnostics, Severity, SourceLocation, error
from ..errors import EngineError
from ..plan import DataSourceKey, PlanFormatError, PlanSnapshot, load_json_document
from ..schema import SchemaFormatError, SchemaRegistry
from ..values import GenericValue
from .base import Engine, EngineContext

logger = logging.getLogger("terraspec.engine.terraform")

_DATA_RE = re.compile(r'^\s*data\s+"([^"]+)"\s+"([^"]+)"', re.MULTILINE)
_OUTPUT_RE = re.compile(r'^\s*output\s+"([^"]+)"', re.MULTILINE)


class TerraformNotFoundError(EngineError):
    pass


@dataclass
class TerraformResolution:
    path: Path
    version: str
    source: str  # "override" or "system"


def _truncate_output(text: Optional[str], limit: int = 4000) -> str:
    if not text:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... (truncated)"


def resolve_terraform(override_path: Optional[str] = None) -> TerraformResolution:
    """Locate a working terraform binary, preferring an explicit path."""

    if override_path:
        path = Path(override_path).expanduser()
        version = _binary_version(path)
        if version is None:
            raise TerraformNotFoundError(f"Could not determine Terraform version for override path: {path}")
        return TerraformResolution(path=path, version=version, source="override")

    system_path = shutil.which("terraform")
    if system_path:
        version = _binary_version(Path(system_path))
        if version is not None:
            return TerraformResolution(path=Path(system_path), version=version, source="system")
    raise TerraformNotFoundError(
        "Terraform CLI not found. Install it or set TERRASPEC_TERRAFORM_BIN / --terraform-bin."
    )


def _binary_version(binary: Path) -> Optional[str]:
    try:
        result = subprocess.run([str(binary), "version", "-json"], capture_output=True, text=True)
    except OSError:
        return None
    if result.returncode == 0:
        try:
            version = json.loads(result.stdout or "{}").get("terraform_version")
        except json.JSONDecodeError:
            version = None
        if version:
            return str(version)
    for line in ((result.stdout or "") + (result.stderr or "")).splitlines():
        line = line.strip()
        if line.lower().startswith("terraform v"):
            parts = line.split()
            if len(parts) >= 2:
                return parts[1].lstrip("v")
    return None


def scan_configuration(config_dir: Path) -> Tuple[FrozenSet[DataSourceKey], FrozenSet[str]]:
    """Collect data sources and outputs declared in the root module's ``*.tf`` files."""

    data_sources = set()
    outputs = set()
    for path in sorted(config_dir.glob("*.tf")):
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("cannot read %s: %s", path, exc)
            continue
        data_sources.update(("", type_name, name) for type_name, name in _DATA_RE.findall(text))
        outputs.update(_OUTPUT_RE.findall(text))
    return frozenset(data_sources), frozenset(outputs)


def convert_diagnostic(raw: Mapping[str, Any]) -> Diagnostic:
    """Translate one diagnostic object from Terraform's JSON output."""

    severity = Severity.WARNING if raw.get("severity") == "warning" else Severity.ERROR
    location = None
    source_range = raw.get("range")
    if isinstance(source_range, Mapping):
        start = source_range.get("start") or {}
        location = SourceLocation(
            str(source_range.get("filename", "")),
            int(start.get("line") or 0),
            int(start.get("column") or 0),
        )
    return Diagnostic(
        severity,
        str(raw.get("detail") or ""),
        summary=str(raw.get("summary") or ""),
        location=location,
    )


def diagnostics_from_json_lines(stream: str) -> Diagnostics:
    """Extract diagnostics from the ``-json`` UI stream of plan and apply."""

    diagnostics = Diagnostics()
    for line in stream.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            continue
        if message.get("type") == "diagnostic" and isinstance(message.get("diagnostic"), Mapping):
            diagnostics.append(convert_diagnostic(message["diagnostic"]))
    return diagnostics


def _failure(summary: str, result: "subprocess.CompletedProcess[str]") -> Diagnostic:
    detail = _truncate_output(result.stderr) or _truncate_output(result.stdout) or f"exit status {result.returncode}"
    return error(detail, summary=summary)


class TerraformCLI:
    """Runs terraform subcommands against one configuration directory."""

    def __init__(self, resolution: TerraformResolution, config_dir: Path) -> None:
        self.resolution = resolution
        self.config_dir = config_dir.resolve()

    def run(self, args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
        command = [str(self.resolution.path), f"-chdir={self.config_dir}", *args]
        logger.debug("running %s", " ".join(command))
        result = subprocess.run(command, capture_output=True, text=True, env=terraform_environment())
        logger.debug("%s exited with %d", args[0], result.returncode)
        return result


class TerraformContext(EngineContext):
    def __init__(
        self,
        cli: TerraformCLI,
        registry: SchemaRegistry,
        variable_file: Optional[Path],
        data_sources: FrozenSet[DataSourceKey],
    ) -> None:
        self._cli = cli
        self._registry = registry
        self._variable_file = variable_file.resolve() if variable_file else None
        self._data_sources = data_sources
        self._workdir = Path(tempfile.mkdtemp(prefix="terraspec-"))
        self._plan_file = self._workdir / "tfplan"

    def schemas(self) -> SchemaRegistry:
        return self._registry

    def data_sources(self) -> Optional[FrozenSet[DataSourceKey]]:
        return self._data_sources

    def set_data_overrides(self, overrides: Mapping[Address, GenericValue]) -> Diagnostics:
        if not overrides:
            return Diagnostics()
        names = ", ".join(sorted(str(address) for address in overrides))
        return Diagnostics(
            [
                error(
                    f"the terraform engine cannot substitute data source reads ({names}); "
                    "run this case with --engine plan-json",
                    summary="Mocks not supported",
                )
            ]
        )

    def refresh(self) -> Diagnostics:
        result = self._cli.run(["validate", "-json", "-no-color"])
        diagnostics = Diagnostics()
        try:
            report = json.loads(result.stdout or "{}")
        except json.JSONDecodeError:
            report = {}
        for raw in report.get("diagnostics") or []:
            if isinstance(raw, Mapping):
                diagnostics.append(convert_diagnostic(raw))
        if result.returncode != 0 and not diagnostics.has_errors():
            diagnostics.append(_failure("terraform validate failed", result))
        return diagnostics

    def _var_args(self) -> List[str]:
        if self._variable_file is None:
            return []
        return [f"-var-file={self._variable_file}"]

    def plan(self) -> Tuple[Optional[PlanSnapshot], Diagnostics]:
        result = self._cli.run(
            [
                "plan",
                "-json",
                "-input=false",
                "-lock=false",
                "-refresh=false",
                f"-out={self._plan_file}",
                *self._var_args(),
            ]
        )
        diagnostics = diagnostics_from_json_lines(result.stdout or "")
        if result.returncode != 0:
            if not diagnostics.has_errors():
                diagnostics.append(_failure("terraform plan failed", result))
            return None, diagnostics

        shown = self._cli.run(["show", "-json", str(self._plan_file)])
        if shown.returncode != 0:
            diagnostics.append(_failure("terraform show failed", shown))
            return None, diagnostics
        try:
            return PlanSnapshot(load_json_document(shown.stdout)), diagnostics
        except PlanFormatError as exc:
            diagnostics.append(error(str(exc), summary="Invalid plan document"))
            return None, diagnostics

    def render_plan(self, snapshot: PlanSnapshot) -> str:
        result = self._cli.run(["show", "-no-color", str(self._plan_file)])
        if result.returncode != 0:
            return super().render_plan(snapshot)
        return result.stdout

    def close(self) -> None:
        shutil.rmtree(self._workdir, ignore_errors=True)


class TerraformEngine(Engine):
    name = "terraform"

    def __init__(self, terraform_bin: Optional[str] = None) -> None:
        self.terraform_bin = terraform_bin
        self._resolution: Optional[TerraformResolution] = None
        self._lock = threading.Lock()

    def resolution(self) -> TerraformResolution:
        with self._lock:
            if self._resolution is None:
                self._resolution = resolve_terraform(self.terraform_bin)
                logger.info(
                    "using terraform %s (%s, source=%s)",
                    self._resolution.version,
                    self._resolution.path,
                    self._resolution.source,
                )
            return self._resolution

    def new_context(
        self,
        config_dir: Path,
        variable_file: Optional[Path],
        *,
        case_dir: Optional[Path] = None,
    ) -> Tuple[Optional[EngineContext], Diagnostics]:
        try:
            cli = TerraformCLI(self.resolution(), config_dir)
        except TerraformNotFoundError as exc:
            return None, Diagnostics([error(str(exc), summary="Terraform unavailable")])

        result = cli.run(["providers", "schema", "-json"])
        if result.returncode != 0:
            return None, Diagnostics([_failure("terraform providers schema failed (did you run terraform init?)", result)])
        data_sources, outputs = scan_configuration(cli.config_dir)
        try:
            registry = SchemaRegistry.from_provider_schemas(json.loads(result.stdout or "{}"), outputs=outputs)
        except (json.JSONDecodeError, SchemaFormatError) as exc:
            return None, Diagnostics([error(str(exc), summary="Invalid provider schema document")])
        return TerraformContext(cli, registry, variable_file, data_sources), Diagnostics()


__all__ = [
    "TerraformEngine",
    "TerraformContext",
    "TerraformCLI",
    "TerraformResolution",
    "TerraformNotFoundError",
    "resolve_terraform",
    "scan_configuration",
    "convert_diagnostic",
    "diagnostics_from_json_lines",
]
