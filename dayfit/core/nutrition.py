from typing import Any

MACROS = ("calories", "protein", "carbs", "fat")
MEAL_SLOTS = ("breakfast", "lunch", "snack", "dinner")


def derive_macros(item: dict, product: Any | None) -> dict:
    """
    Fill the macros a meal product entry is missing from its catalog product,
    scaled from per-100g values to the entry's quantity in grams.
    """
    if product is None:
        return item

    factor = (item.get("quantity") or 0) / 100.0
    derived = dict(item)
    for macro in MACROS:
        if derived.get(macro) is not None:
            continue
        per_100g = getattr(product, f"{macro}_per_100g", None)
        if per_100g is not None:
            derived[macro] = per_100g * factor
    if not derived.get("product_name"):
        derived["product_name"] = product.name
    return derived


def sum_macros(products: list[dict] | None) -> dict:
    totals = {macro: 0.0 for macro in MACROS}
    for p in products or []:
        for macro in MACROS:
            totals[macro] += p.get(macro) or 0
    return totals


def slot_totals(slot: dict | None) -> dict:
    if not isinstance(slot, dict):
        return sum_macros(None)
    return sum_macros(slot.get("products"))


def meal_totals(meal) -> dict:
    """Daily totals over the populated slots of a meal row."""
    totals = {macro: 0.0 for macro in MACROS}
    for name in MEAL_SLOTS:
        slot = getattr(meal, name, None)
        if not slot:
            continue
        for macro, value in slot_totals(slot).items():
            totals[macro] += value
    return totals
