"""
QR code provisioning for advisors.

Every advisor gets one PNG, named by the advisor identifier, that encodes the
public feedback-form URL ``<base>/feedback/<advisor_id>``. The image is a
derived artifact: it can always be rebuilt from the identifier and the base
URL, so ``ensure`` only writes on a cache miss and ``regenerate`` always
rewrites.
"""

import logging
import os
import socket

from qrcode.exceptions import DataOverflowError

from .qr_generator import generate_qr


logger = logging.getLogger(__name__)

QR_IMAGE_ROUTE = "/api/advisors/qrcodes"

# errors raised while encoding or writing an image
QR_ERRORS = (OSError, ValueError, DataOverflowError)


def detect_lan_ip():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()


def resolve_public_base_url(settings):
    """Pick the public base URL once, at startup.

    An explicit ``public_base_url`` always wins; otherwise links point at this
    host's LAN address on the configured port.
    """
    flask_port = int(settings.get("flask_port", 5000))
    public_url = (settings.get("public_base_url") or "").strip().rstrip("/")
    if public_url:
        return public_url
    if settings.get("auto_detect_ip", True):
        return f"http://{detect_lan_ip()}:{flask_port}"
    return f"http://127.0.0.1:{flask_port}"


class QRProvisioner:
    def __init__(self, qr_dir, public_base_url):
        self.qr_dir = qr_dir
        self.public_base_url = public_base_url.rstrip("/")

    def init_storage(self):
        """Create the image directory. Called once when the app starts."""
        if not os.path.isdir(self.qr_dir):
            os.makedirs(self.qr_dir, exist_ok=True)
            logger.info("Created QR code directory %s", self.qr_dir)

    @staticmethod
    def file_name(advisor_id):
        return f"{advisor_id}.png"

    def artifact_path(self, advisor_id):
        return os.path.join(self.qr_dir, self.file_name(advisor_id))

    def feedback_url(self, advisor_id):
        return f"{self.public_base_url}/feedback/{advisor_id}"

    def image_url(self, advisor_id):
        return f"{self.public_base_url}{QR_IMAGE_ROUTE}/{self.file_name(advisor_id)}"

    def has_artifact(self, advisor_id):
        return os.path.isfile(self.artifact_path(advisor_id))

    def ensure(self, advisor_id, label=""):
        """Return the image URL, generating the image only if it is missing."""
        if self.has_artifact(advisor_id):
            return self.image_url(advisor_id)
        return self.regenerate(advisor_id, label=label)

    def regenerate(self, advisor_id, label=""):
        """Always re-encode and overwrite the advisor's image."""
        path = self.artifact_path(advisor_id)
        generate_qr(self.feedback_url(advisor_id), path, label=label)
        logger.info("Generated QR code for advisor %s -> %s", advisor_id, self.feedback_url(advisor_id))
        return self.image_url(advisor_id)
