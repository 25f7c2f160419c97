# products/constants.py
from decimal import Decimal

# ==================== FRAME ATTRIBUTES ====================

FRAME_SHAPES = [
    ('ROUND', 'Round'),
    ('SQUARE', 'Square'),
    ('RECTANGLE', 'Rectangle'),
    ('AVIATOR', 'Aviator'),
    ('CAT_EYE', 'Cat Eye'),
    ('WAYFARER', 'Wayfarer'),
    ('OVAL', 'Oval'),
    ('GEOMETRIC', 'Geometric'),
    ('CLUBMASTER', 'Clubmaster'),
]

FRAME_MATERIALS = [
    ('METAL', 'Metal'),
    ('PLASTIC', 'Plastic'),
    ('ACETATE', 'Acetate'),
    ('TR90', 'TR90'),
    ('TITANIUM', 'Titanium'),
    ('WOOD', 'Wood'),
    ('MIXED', 'Mixed'),
]

GENDERS = [
    ('MEN', 'Men'),
    ('WOMEN', 'Women'),
    ('UNISEX', 'Unisex'),
    ('KIDS', 'Kids'),
]

FRAME_SIZES = [
    ('SMALL', 'Small'),
    ('MEDIUM', 'Medium'),
    ('LARGE', 'Large'),
    ('EXTRA_LARGE', 'Extra Large'),
]

SORT_OPTIONS = ('newest', 'price_asc', 'price_desc', 'popular', 'rating')


# ==================== LENS CATALOGUE ====================
# id -> (label, add-on price in ₹)

LENS_TYPES = {
    'zero-power': ('Zero Power', Decimal('0')),
    'single-vision': ('Single Vision', Decimal('299')),
    'bifocal': ('Bifocal', Decimal('599')),
    'progressive': ('Progressive', Decimal('999')),
}

LENS_PACKAGES = {
    'classic': ('Classic', Decimal('0')),
    'blu-cut': ('Blu Cut', Decimal('199')),
    'photochromic': ('Photochromic', Decimal('499')),
    'polarized': ('Polarized', Decimal('399')),
}

LENS_THICKNESS = {
    'standard': ('Standard', Decimal('0')),
    'thin': ('Thin', Decimal('199')),
    'ultra-thin': ('Ultra Thin', Decimal('399')),
}

PRESCRIPTION_OPTIONS = {
    'upload': 'Upload Prescription',
    'later': 'Send Later',
}


def choices_of(catalogue):
    """Turn a lens catalogue dict into form choices."""
    out = []
    for key, value in catalogue.items():
        label = value[0] if isinstance(value, tuple) else value
        out.append((key, label))
    return out


def lens_price(lens_type, lens_package, lens_thickness):
    """Total lens add-on for one frame. Unknown ids count as ₹0."""
    total = Decimal('0')
    for catalogue, key in ((LENS_TYPES, lens_type), (LENS_PACKAGES, lens_package), (LENS_THICKNESS, lens_thickness)):
        entry = catalogue.get(key)
        if entry:
            total += entry[1]
    return total
