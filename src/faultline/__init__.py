"""faultline — client-side error reporting SDK core.

Keeps local configuration in sync with server-pushed settings and runs
events through an ordered, fault-isolated plugin pipeline before upload.
"""

from faultline.client import FaultlineClient
from faultline.configuration import Configuration

__version__ = "0.3.0"

__all__ = ["Configuration", "FaultlineClient", "__version__"]
