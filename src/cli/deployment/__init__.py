"""Build and deployment pipeline for the sample application.

The package is organized by concern:
- config: Run configuration read once from environment variables
- target: Deployment target resolution (Kind or EKS)
- values: Values overlay preparation and placeholder substitution
- shell_commands: Abstractions for shell command execution
- stages: The six pipeline stages and their results
- sequencer: Multi-environment promotion (dev -> staging -> prod)
- orchestrator: Fixed-order pipeline composition
- releases: Release status and teardown
"""

from .config import PipelineConfig, load_pipeline_config
from .constants import PipelineConstants, PipelinePaths
from .errors import (
    ConfigurationError,
    ExternalToolFailure,
    PipelineError,
    TimeoutFailure,
)
from .orchestrator import PipelineOrchestrator, PipelineRun
from .releases import ReleaseManager
from .sequencer import EnvironmentSequencer
from .stages import Stage, StageResult, StageRunner
from .target import (
    DeploymentTarget,
    EnvironmentRecord,
    RegistryAuth,
    ResolvedTarget,
    resolve_target,
)

__all__ = [
    "PipelineConfig",
    "load_pipeline_config",
    "PipelineConstants",
    "PipelinePaths",
    "PipelineError",
    "ConfigurationError",
    "ExternalToolFailure",
    "TimeoutFailure",
    "DeploymentTarget",
    "EnvironmentRecord",
    "RegistryAuth",
    "ResolvedTarget",
    "resolve_target",
    "Stage",
    "StageResult",
    "StageRunner",
    "EnvironmentSequencer",
    "PipelineOrchestrator",
    "PipelineRun",
    "ReleaseManager",
]
