"""WebDAV property steps package.

Exposes the per-scenario object and configuration loader used by the behave
step definitions. Request construction lives in `davprops/http/`, response
assertions and ETag tracking in `davprops/logic/`, and the step definitions
themselves in `davprops/steps/`.
"""

from __future__ import annotations

from davprops.config import DavConfig, load_config
from davprops.scenario import WebDavPropertiesScenario

__all__ = ["DavConfig", "load_config", "WebDavPropertiesScenario"]
