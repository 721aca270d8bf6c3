"""QR helpers for the feedback system.

``generate_qr`` draws a single image; ``QRProvisioner`` owns the per-advisor
image directory and the public links built from the configured base URL.
"""

from .provisioning import QRProvisioner, resolve_public_base_url
from .qr_generator import generate_qr

__all__ = ["QRProvisioner", "generate_qr", "resolve_public_base_url"]
