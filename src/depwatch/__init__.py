"""
DEPWATCH - npm Supply-Chain Watch

Periodically inspects the npm packages that depend on a watched target
package and forwards newly published dependents to an external
security scanning service for analysis.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "DEPWATCH Team"
__status__ = "Production"
