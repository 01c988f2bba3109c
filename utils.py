import numpy as np
from PIL import Image


def normalize_image(image, min_width, min_height):
    # large enough images are used as they are
    width, height = image.size
    if width >= min_width and height >= min_height:
        return image
    # upscale to exactly the canonical size, nearest neighbour keeps module edges hard
    return image.resize((min_width, min_height), Image.Resampling.NEAREST)


def to_luminance(image) -> np.ndarray:
    '''8-bit luminance of the image as a (height, width) array'''
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        # transparent pixels count as white paper
        background = Image.new("RGBA", image.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, image.convert("RGBA"))
    return np.asarray(image.convert("L"), dtype=np.uint8)
