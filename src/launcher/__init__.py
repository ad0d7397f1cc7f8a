"""Idempotent bootstrap launcher for third-party Python applications.

This package prepares a workstation to run an application distributed
as a Git repository plus a shell launcher script, providing:
- Required system command checks with install hints
- Idempotent download, clone and virtual environment provisioning
- Virtual environment activation and handoff to the downstream launcher

The default configuration targets AUTOMATIC1111's stable-diffusion-webui
on Fedora.
"""

__version__ = "1.0.0"
