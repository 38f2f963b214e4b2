from .actions import CallableAction, ShellAction
from .harness import Harness, precheck
from .privilege import PrivilegeSession
from .session import provisioning_session
from .sink import LogSink
from .tempfiles import TEMP_FILES, TempRegistry
from .types import (
    ActionContext,
    ActionResult,
    AlreadyPresent,
    Applied,
    Bucket,
    Failed,
    HarnessError,
    NotApplicable,
    Outcome,
    PrerequisiteFailed,
    PrivilegeError,
    ReportEntry,
    RunReport,
    Task,
    bucket_of,
)

__all__ = [
    "Harness",
    "precheck",
    "provisioning_session",
    "PrivilegeSession",
    "LogSink",
    "TempRegistry",
    "TEMP_FILES",
    "ShellAction",
    "CallableAction",
    "ActionContext",
    "ActionResult",
    "AlreadyPresent",
    "Applied",
    "Failed",
    "NotApplicable",
    "Outcome",
    "Bucket",
    "bucket_of",
    "ReportEntry",
    "RunReport",
    "Task",
    "HarnessError",
    "PrerequisiteFailed",
    "PrivilegeError",
]
