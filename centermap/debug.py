'''Debug view for the uncropped map image.

The debug view shows:

- tile limits and tile numbers
- the area that would be cropped, everything else is masked
- a reticule-like shape at the center of the map
'''
from PIL import Image
from PIL import ImageDraw

from .bbox import TILE_SIZE
from .render import load_font


GRID_COLOR = (0, 0, 255, 255)
RETICULE_COLOR = (0, 0, 0, 255)
CROP_COLOR = (0, 0, 0, 255)
LABEL_BACKGROUND = (255, 255, 255, 195)
MASK_COLOR = (0, 0, 0, 55)

_DASH = 4
_RETICULE_RADIUS = 10
_RETICULE_INNER = 5
_RETICULE_OUTER = 50


def render_debug_overlay(canvas, bbox, width, height):
    '''Draw debug information on the uncropped map image.

    ``canvas`` is the uncropped image for ``bbox``, ``width`` and ``height``
    are the requested map dimensions.

    Returns a new image, ``canvas`` is not modified.
    '''
    img = canvas.convert('RGBA')

    # Transparent elements are painted on a separate layer
    # which is then composed with the map.
    overlay = Image.new('RGBA', img.size, color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay, mode='RGBA')
    font = load_font('DejaVuSans.ttf', 12)

    _draw_tile_grid(draw, bbox, font)
    _draw_mask(draw, bbox, width, height)
    _draw_crop_area(draw, bbox, width, height, font)
    _draw_reticule(draw, bbox, width, height)

    img.alpha_composite(overlay)
    return img


def _draw_tile_grid(draw, bbox, font):
    total = bbox.x_tile_count * bbox.y_tile_count
    index = 1
    for row in range(bbox.y_tile_count):
        for col in range(bbox.x_tile_count):
            left = col * TILE_SIZE
            top = row * TILE_SIZE

            # Lines are drawn one pixel to the top/left, i.e. on the
            # bottom/right border of the neighboring tile. Thus there are no
            # lines on the edges of the image.
            _dashed_line(draw,
                         (left - 1, top - 1),
                         (left + TILE_SIZE - 1, top - 1),
                         GRID_COLOR)
            _dashed_line(draw,
                         (left - 1, top - 1),
                         (left - 1, top + TILE_SIZE - 1),
                         GRID_COLOR)

            label = '%s/%s' % (index, total)
            if index == 1:
                label = 'Tile ' + label

            label_width = 110 if index == 1 else 60
            draw.rectangle([left, top, left + label_width, top + 25],
                           fill=LABEL_BACKGROUND)
            draw.text((left + 10, top + 5), label, font=font, fill=GRID_COLOR)

            index += 1


def _draw_mask(draw, bbox, width, height):
    '''Mask everything outside of the crop area.'''
    # The mask is made from four rectangles:
    #
    # 1111111
    # 22XXX33
    # 4444444
    left = bbox.left_offset
    top = bbox.top_offset
    right = left + width
    bottom = top + height
    full_w = bbox.uncropped_width
    full_h = bbox.uncropped_height

    _fill(draw, 0, 0, full_w, top - 1)
    _fill(draw, 0, top, left - 1, bottom - 1)
    _fill(draw, right, top, full_w, bottom - 1)
    _fill(draw, 0, bottom, full_w, full_h)


def _fill(draw, x0, y0, x1, y1):
    # empty if the crop area touches the image border
    if x1 < x0 or y1 < y0:
        return
    draw.rectangle([x0, y0, x1, y1], fill=MASK_COLOR)


def _draw_crop_area(draw, bbox, width, height, font):
    left = bbox.left_offset
    top = bbox.top_offset
    draw.rectangle([left, top, left + width, top + height],
                   outline=CROP_COLOR)

    draw.rectangle([left + 1, top + 1, left + 125, top + 25],
                   fill=LABEL_BACKGROUND)
    draw.text((left + 10, top + 5), 'Cropped area', font=font, fill=CROP_COLOR)


def _draw_reticule(draw, bbox, width, height):
    '''Draw a circle at the map center with four lines around it.'''
    x = bbox.left_offset + width / 2
    y = bbox.top_offset + height / 2
    r = _RETICULE_RADIUS
    draw.ellipse([x - r, y - r, x + r, y + r], outline=RETICULE_COLOR)

    inner = _RETICULE_INNER
    outer = _RETICULE_OUTER
    draw.line([(x, y - outer), (x, y - inner)], fill=RETICULE_COLOR)  # top
    draw.line([(x - outer, y), (x - inner, y)], fill=RETICULE_COLOR)  # left
    draw.line([(x + inner, y), (x + outer, y)], fill=RETICULE_COLOR)  # right
    draw.line([(x, y + inner), (x, y + outer)], fill=RETICULE_COLOR)  # bottom


def _dashed_line(draw, start, end, color):
    '''Draw a horizontal or vertical dashed line.'''
    x0, y0 = start
    x1, y1 = end
    if y0 == y1:
        for x in range(x0, x1 + 1, _DASH * 2):
            draw.line([(x, y0), (min(x + _DASH - 1, x1), y0)], fill=color)
    else:
        for y in range(y0, y1 + 1, _DASH * 2):
            draw.line([(x0, y), (x0, min(y + _DASH - 1, y1))], fill=color)
