"""Cart-conditioned checkout fields.

Checkout fields are explicit :class:`CheckoutField` records. A
:class:`FieldRule` adds fields when any product in the cart belongs to one of
its trigger categories. Submitted values are sanitised and stored on the
order as ``_<field_key>`` meta entries.
"""

import logging
import re
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from src.api.exceptions import InvalidCheckoutFieldError, ProductNotFoundError
from src.recommender.store import CommerceStore

# Configure module logger
logger = logging.getLogger(__name__)

ELECTRONIC_CATEGORY_SLUGS = frozenset({"electronics", "computers", "laptops"})
META_KEY_PREFIX = "_"

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")


class FieldKind(str, Enum):
    """Input widget types supported on the checkout form."""

    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"


class FieldOption(BaseModel):
    """One choice of a select field."""

    value: str
    label: str


class CheckoutField(BaseModel):
    """A checkout form field definition."""

    field_key: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    kind: FieldKind = FieldKind.TEXT
    label: str
    required: bool = False
    options: List[FieldOption] = Field(default_factory=list)
    section: str = "order"

    def option_values(self) -> List[str]:
        return [option.value for option in self.options]


class FieldRule(BaseModel):
    """Fields added when the cart holds a product in a trigger category."""

    name: str
    trigger_category_slugs: FrozenSet[str]
    fields: List[CheckoutField]

    def matches(self, category_slugs: Iterable[str]) -> bool:
        return any(slug.lower() in self.trigger_category_slugs for slug in category_slugs)


OPERATING_SYSTEM_FIELD = CheckoutField(
    field_key="operating_system",
    kind=FieldKind.SELECT,
    label="Operating System",
    required=True,
    options=[
        FieldOption(value="", label="Select Operating System"),
        FieldOption(value="windows", label="Windows"),
        FieldOption(value="macos", label="macOS"),
        FieldOption(value="linux", label="Linux"),
        FieldOption(value="other", label="Other"),
    ],
    section="order",
)


def default_field_rules(
    electronic_slugs: Iterable[str] = ELECTRONIC_CATEGORY_SLUGS,
) -> List[FieldRule]:
    """Return the built-in rules: an operating system selector for electronics."""
    return [
        FieldRule(
            name="electronics",
            trigger_category_slugs=frozenset(slug.lower() for slug in electronic_slugs),
            fields=[OPERATING_SYSTEM_FIELD],
        )
    ]


def product_category_slugs(product_id: int, store: CommerceStore) -> List[str]:
    """Return the lower-cased category slugs of a product.

    Raises:
        ProductNotFoundError: If the product does not exist.
    """
    return [category.slug.lower() for category in store.categories_of(product_id)]


def is_electronic_product(
    product_id: int,
    store: CommerceStore,
    electronic_slugs: Iterable[str] = ELECTRONIC_CATEGORY_SLUGS,
) -> bool:
    """Check whether a product sits in an electronics category."""
    wanted = {slug.lower() for slug in electronic_slugs}
    try:
        return any(slug in wanted for slug in product_category_slugs(product_id, store))
    except ProductNotFoundError:
        return False


def customize_checkout_fields(
    fields: Sequence[CheckoutField],
    cart_product_ids: Iterable[int],
    store: CommerceStore,
    rules: Optional[Sequence[FieldRule]] = None,
) -> List[CheckoutField]:
    """Add the fields of every rule triggered by the cart.

    A field key appears at most once in the result. A later definition
    replaces an earlier one in place.

    Args:
        fields: Base checkout fields.
        cart_product_ids: Product ids currently in the cart.
        store: Store used to resolve product categories.
        rules: Field rules; defaults to :func:`default_field_rules`.

    Returns:
        The customised list of checkout fields.
    """
    if rules is None:
        rules = default_field_rules()

    merged: Dict[str, CheckoutField] = {f.field_key: f for f in fields}

    for product_id in cart_product_ids:
        try:
            slugs = product_category_slugs(product_id, store)
        except ProductNotFoundError:
            logger.warning(
                "Cart product missing from catalog, skipping",
                extra={"product_id": product_id},
            )
            continue

        for rule in rules:
            if rule.matches(slugs):
                for rule_field in rule.fields:
                    merged[rule_field.field_key] = rule_field

    added = len(merged) - len({f.field_key for f in fields})
    logger.debug(f"Customized checkout fields: {added} added, {len(merged)} total")

    return list(merged.values())


def sanitize_text_field(value: str) -> str:
    """Strip tags and control characters and collapse whitespace."""
    cleaned = _TAG_RE.sub("", str(value))
    cleaned = _CONTROL_RE.sub(" ", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def validate_field_value(checkout_field: CheckoutField, value: Optional[str]) -> Optional[str]:
    """Sanitise a submitted value and check it against the field definition.

    Returns:
        The cleaned value, or None when nothing was submitted.

    Raises:
        InvalidCheckoutFieldError: If a required value is missing or a
            select value is not one of the options.
    """
    cleaned = None if value is None else sanitize_text_field(value)

    if not cleaned:
        if checkout_field.required:
            raise InvalidCheckoutFieldError(checkout_field.field_key, "a value is required")
        return None

    if checkout_field.kind == FieldKind.SELECT and cleaned not in checkout_field.option_values():
        raise InvalidCheckoutFieldError(
            checkout_field.field_key, "not one of the allowed options", cleaned
        )

    return cleaned


def save_custom_checkout_fields(
    order_id: int,
    submitted: Mapping[str, str],
    fields: Sequence[CheckoutField],
    store: CommerceStore,
) -> Dict[str, str]:
    """Persist submitted custom field values to the order's meta.

    All values are validated before anything is written, so a rejected
    value leaves the order unchanged.

    Args:
        order_id: Order being placed.
        submitted: Posted form values keyed by field key.
        fields: Custom fields active for this checkout.
        store: Store the order meta is written to.

    Returns:
        The meta entries written, keyed by meta key.

    Raises:
        InvalidCheckoutFieldError: If a submitted value is rejected.
        OrderNotFoundError: If the order does not exist.
    """
    store.get_order(order_id)

    to_write: Dict[str, str] = {}
    for checkout_field in fields:
        cleaned = validate_field_value(checkout_field, submitted.get(checkout_field.field_key))
        if cleaned is not None:
            to_write[META_KEY_PREFIX + checkout_field.field_key] = cleaned

    for key, value in to_write.items():
        store.update_order_meta(order_id, key, value)

    logger.info(
        "Saved custom checkout fields",
        extra={"order_id": order_id, "meta_keys": sorted(to_write)},
    )

    return to_write
