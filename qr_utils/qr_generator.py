import qrcode
from PIL import Image, ImageDraw, ImageFont


BOX_SIZE = 10
BORDER = 5
CAPTION_PADDING = 14


def _add_caption(qr_img, caption):
    """Return a copy of *qr_img* with *caption* centred underneath."""
    font = ImageFont.load_default()
    left, top, right, bottom = ImageDraw.Draw(qr_img).textbbox((0, 0), caption, font=font)
    caption_width = right - left
    caption_height = bottom - top

    width = max(qr_img.width, caption_width + 2 * CAPTION_PADDING)
    height = qr_img.height + caption_height + 2 * CAPTION_PADDING
    canvas = Image.new("RGB", (width, height), "white")
    canvas.paste(qr_img, ((width - qr_img.width) // 2, 0))

    ImageDraw.Draw(canvas).text(
        ((width - caption_width) // 2, qr_img.height + CAPTION_PADDING),
        caption,
        fill="black",
        font=font,
    )
    return canvas


def generate_qr(data: str, path: str, label: str = "") -> str:
    """Encode *data* as a QR code and save it as a PNG at *path*.

    A non-empty *label* is drawn as a caption under the code. The target
    directory must already exist. Returns *path*.
    """
    qr = qrcode.QRCode(version=1, box_size=BOX_SIZE, border=BORDER)
    qr.add_data(data)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    caption = (label or "").strip()
    if caption:
        image = _add_caption(image, caption)

    image.save(path, format="PNG")
    return path
