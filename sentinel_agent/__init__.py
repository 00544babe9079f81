"""Test Sentinel - diagnoses and remediates unexpected browser-test conditions."""

try:
    from sentinel_agent._version import version as __version__
except ImportError:
    __version__ = "0.0.0.dev0"
