# taro/renderer.py
# Builds the spread picture:
# - fetches card art (with an 8 s limit) or draws a placeholder
# - lays the cards out in rows of up to five, every row centred on its own
# - reversed cards are turned 180°, labels under them stay upright

import asyncio
import io
import logging
from functools import lru_cache
from typing import Dict, List, NamedTuple, Optional, Tuple

import aiohttp
from PIL import Image, ImageDraw, ImageFont

from taro.models import Card, DrawnCard, Reading
from taro.spreads import display_name

logger = logging.getLogger(__name__)

CARD_WIDTH = 120
CARD_HEIGHT = 200
CARD_SPACING_X = 140
CARD_SPACING_Y = 280
MARGIN_X = 70
TOP_MARGIN = 300
BOTTOM_MARGIN = 60
MAX_COLUMNS = 5

FETCH_TIMEOUT = 8
NAME_WRAP_LENGTH = 12

PLACEHOLDER_SIZE = (150, 250)

BACKGROUND = "#1a1a2e"
TEXT_COLOR = "#ffffff"
RULE_COLOR = "#666666"
UPRIGHT_COLOR = "#4ecdc4"
REVERSED_COLOR = "#ff6b6b"
FALLBACK_FILL = "#666666"
PLACEHOLDER_FILL = "#2C3E50"
PLACEHOLDER_INK = "#ECF0F1"

DRIVE_URL = "https://drive.google.com/uc?id={}&export=download"


# ======================
#   LAYOUT
# ======================
class SpreadLayout(NamedTuple):
    width: int
    height: int
    columns: int
    rows: int
    # card centres, in reading order
    centers: List[Tuple[int, int]]


def compute_layout(card_count: int) -> SpreadLayout:
    columns = min(card_count, MAX_COLUMNS)
    rows = -(-card_count // MAX_COLUMNS)

    width = MARGIN_X * 2 + columns * CARD_SPACING_X
    cards_area = (rows - 1) * CARD_SPACING_Y + CARD_HEIGHT if rows else 0
    height = TOP_MARGIN + cards_area + BOTTOM_MARGIN

    centers = []
    for i in range(card_count):
        col = i % MAX_COLUMNS
        row = i // MAX_COLUMNS
        in_row = min(card_count - row * MAX_COLUMNS, MAX_COLUMNS)
        row_width = (in_row - 1) * CARD_SPACING_X
        start_x = (width - row_width) // 2
        centers.append((start_x + col * CARD_SPACING_X, TOP_MARGIN + row * CARD_SPACING_Y))

    return SpreadLayout(width, height, columns, rows, centers)


# ======================
#   IMAGE HELPERS
# ======================
@lru_cache(maxsize=None)
def _load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    for path in (f"/usr/share/fonts/truetype/dejavu/{name}", name):
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default()


def _draw_centered(draw: ImageDraw.ImageDraw, text: str, x: float, y: float, font, fill):
    """Centres `text` horizontally on x with its bottom edge on y."""
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((x - (left + right) / 2, y - bottom), text, font=font, fill=fill)


def _round_corners(img: Image.Image, radius: int = 8) -> Image.Image:
    mask = Image.new("L", img.size, 0)
    draw = ImageDraw.Draw(mask)
    draw.rounded_rectangle((0, 0, img.size[0], img.size[1]), radius, fill=255)
    out = Image.new("RGBA", img.size, (0, 0, 0, 0))
    out.paste(img, (0, 0), mask)
    return out


def create_placeholder_card(card: Card) -> Image.Image:
    w, h = PLACEHOLDER_SIZE
    img = Image.new("RGBA", (w, h), PLACEHOLDER_FILL)
    draw = ImageDraw.Draw(img)
    draw.rectangle((5, 5, w - 5, h - 5), outline=PLACEHOLDER_INK, width=2)
    _draw_centered(draw, card.name, w / 2, 125, _load_font(12, bold=True), PLACEHOLDER_INK)
    _draw_centered(draw, card.type, w / 2, 230, _load_font(10), PLACEHOLDER_INK)
    return img


def _png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, "PNG", optimize=True)
    return buf.getvalue()


# ======================
#   ARTWORK
# ======================
def artwork_url(image_ref: str) -> str:
    if image_ref.startswith(("http://", "https://")):
        return image_ref
    return DRIVE_URL.format(image_ref)


class ArtworkFetcher:
    """Downloads card art; the image reference is a Drive file id or a URL."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session

    async def fetch(self, image_ref: str) -> bytes:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        async with self._session.get(artwork_url(image_ref)) as resp:
            resp.raise_for_status()
            return await resp.read()

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()


class SpreadRenderer:
    def __init__(self, fetcher, fetch_timeout: float = FETCH_TIMEOUT):
        self.fetcher = fetcher
        self.fetch_timeout = fetch_timeout
        # card id -> art, real or placeholder, kept for the whole run
        self.artwork_cache: Dict[int, Image.Image] = {}

    async def load_card_image(self, card: Card) -> Image.Image:
        cached = self.artwork_cache.get(card.id)
        if cached is not None:
            return cached

        if not card.image_ref:
            logger.info("No image id for card %s, creating placeholder", card.name)
            image = create_placeholder_card(card)
        else:
            try:
                data = await asyncio.wait_for(
                    self.fetcher.fetch(card.image_ref), self.fetch_timeout
                )
                image = _round_corners(Image.open(io.BytesIO(data)).convert("RGBA"))
                logger.info("Loaded image for %s: %dx%d", card.name, *image.size)
            except asyncio.TimeoutError:
                logger.error("Image load timeout for card %s", card.name)
                image = create_placeholder_card(card)
            except (aiohttp.ClientError, OSError, ValueError) as e:
                logger.error("Error loading image for card %s: %s", card.name, e)
                image = create_placeholder_card(card)

        self.artwork_cache[card.id] = image
        return image

    async def render(self, reading: Reading) -> Optional[bytes]:
        try:
            return await self._render(reading)
        except Exception:
            logger.exception("Spread image generation failed for %s", reading.spread_name)
            return None

    async def _render(self, reading: Reading) -> bytes:
        layout = compute_layout(len(reading.slots))
        logger.debug(
            "Spread %s: %dx%d, %d cols x %d rows",
            reading.spread_name, layout.width, layout.height, layout.columns, layout.rows,
        )

        canvas = Image.new("RGB", (layout.width, layout.height), BACKGROUND)
        draw = ImageDraw.Draw(canvas)

        _draw_centered(
            draw, display_name(reading.spread_name), layout.width / 2, 40,
            _load_font(24, bold=True), TEXT_COLOR,
        )
        _draw_centered(
            draw, f"Question: {reading.question}", layout.width / 2, 70,
            _load_font(16), TEXT_COLOR,
        )
        draw.line((50, 85, layout.width - 50, 85), fill=RULE_COLOR, width=1)

        for slot, (x, y) in zip(reading.slots, layout.centers):
            try:
                await self._draw_card(canvas, draw, slot.label, slot.card, x, y)
            except Exception:
                logger.exception("Error drawing card %s", slot.card.name)
                self._draw_fallback(draw, slot.card, x, y)

        return _png_bytes(canvas)

    async def _draw_card(self, canvas, draw, label: str, drawn: DrawnCard, x: int, y: int):
        art = await self.load_card_image(drawn.card)
        art = art.convert("RGBA").resize((CARD_WIDTH, CARD_HEIGHT), Image.LANCZOS)
        if drawn.orientation.is_reversed:
            art = art.rotate(180)
        canvas.paste(art, (x - CARD_WIDTH // 2, y - CARD_HEIGHT // 2), art)

        label_y = y + CARD_HEIGHT // 2 + 20
        _draw_centered(draw, label, x, label_y, _load_font(12, bold=True), TEXT_COLOR)

        color = REVERSED_COLOR if drawn.orientation.is_reversed else UPRIGHT_COLOR
        glyph = drawn.orientation.glyph
        info = f"{drawn.name} {glyph}"
        font = _load_font(10)
        if len(info) > NAME_WRAP_LENGTH:
            _draw_centered(draw, drawn.name, x, label_y + 15, font, color)
            _draw_centered(draw, glyph, x, label_y + 27, font, color)
        else:
            _draw_centered(draw, info, x, label_y + 15, font, color)

    def _draw_fallback(self, draw, drawn: DrawnCard, x: int, y: int):
        draw.rectangle(
            (x - CARD_WIDTH // 2, y - CARD_HEIGHT // 2, x + CARD_WIDTH // 2, y + CARD_HEIGHT // 2),
            fill=FALLBACK_FILL,
        )
        _draw_centered(
            draw, f"{drawn.name} {drawn.orientation.glyph}", x, y, _load_font(12), TEXT_COLOR
        )
