from .guards import GSettingsSchemaGuard, GuiSessionGuard, NotContainerGuard, NvidiaGpuGuard
from .probes import CommandProbe, GSettingProbe, PathProbe, ShellProbe
from .types import CheckError, Guard, Probe, ProbeError, Runner, run_quiet

__all__ = [
    "CommandProbe",
    "PathProbe",
    "ShellProbe",
    "GSettingProbe",
    "GuiSessionGuard",
    "NvidiaGpuGuard",
    "NotContainerGuard",
    "GSettingsSchemaGuard",
    "Guard",
    "Probe",
    "Runner",
    "run_quiet",
    "CheckError",
    "ProbeError",
]
