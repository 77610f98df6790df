"""
Field mapping between domain models and record-store rows.

The record store names lookups `_<name>_value` on read and expects
`<name>@odata.bind` references on write.
"""
from cart_checkout.data.record_store import odata_quote
from cart_checkout.domain.enums import BuyerKind, OrderStatus, PaymentStatus, ProductCategory
from cart_checkout.domain.models import CartItem, Order, PersistedOrderLine

ORDER_ENTITY = "orders"
ORDER_LINE_ENTITY = "order_lines"

ORDER_LINE_FIELDS = {
    "id": "order_lineid",
    "order": "_order_value",
    "product_id": "product_id",
    "product_name": "product_name",
    "category": "product_category",
    "insurance_type": "insurance_type",
    "insurance_limit": "insurance_limit",
    "additional_info": "product_additional_info",
    "quantity": "quantity",
    "unit_price": "selected_price",
    "tax_rate": "product_tax",
    "subtotal": "item_subtotal",
    "tax_amount": "tax_amount",
    "total": "item_total",
    "created_on": "createdon",
}

# captured from the product at add-to-cart time
SNAPSHOT_FIELDS = (
    "product_id",
    "product_name",
    "category",
    "insurance_type",
    "insurance_limit",
    "additional_info",
    "unit_price",
    "tax_rate",
)
CALCULATED_FIELDS = ("quantity", "subtotal", "tax_amount", "total")
IMMUTABLE_LINE_FIELDS = SNAPSHOT_FIELDS + CALCULATED_FIELDS

# lookup name, entity set
_BUYER_LOOKUP = {
    BuyerKind.ACCOUNT: ("account", "accounts"),
    BuyerKind.AFFILIATE: ("affiliate", "affiliates"),
}


def bind(entity_set: str, record_id: str) -> str:
    return f"/{entity_set}({record_id})"


def cart_item_to_record(item: CartItem) -> dict:
    f = ORDER_LINE_FIELDS
    payload = {
        "order@odata.bind": bind(ORDER_ENTITY, item.order_id),
        f["product_id"]: item.product_id,
        f["product_name"]: item.product_name,
        f["category"]: item.category.value,
        f["quantity"]: item.quantity,
        f["unit_price"]: item.unit_price,
        f["tax_rate"]: item.tax_rate,
        f["subtotal"]: item.subtotal,
        f["tax_amount"]: item.tax_amount,
        f["total"]: item.total,
    }
    for name in ("insurance_type", "insurance_limit", "additional_info"):
        value = getattr(item, name)
        if value is not None:
            payload[f[name]] = value
    return payload


def record_to_order_line(row: dict) -> PersistedOrderLine:
    f = ORDER_LINE_FIELDS
    category = row.get(f["category"])
    return PersistedOrderLine(
        id=row[f["id"]],
        order_id=row.get(f["order"]) or "",
        product_id=row[f["product_id"]],
        product_name=row.get(f["product_name"]) or "",
        category=ProductCategory(category) if category else None,
        insurance_type=row.get(f["insurance_type"]),
        insurance_limit=row.get(f["insurance_limit"]),
        additional_info=row.get(f["additional_info"]),
        quantity=row[f["quantity"]],
        unit_price=row[f["unit_price"]],
        tax_rate=row.get(f["tax_rate"]) or 0,
        subtotal=row[f["subtotal"]],
        tax_amount=row.get(f["tax_amount"]) or 0,
        total=row[f["total"]],
        created_on=row.get(f["created_on"]),
    )


def line_changes_to_record(changes: dict) -> dict:
    return {ORDER_LINE_FIELDS.get(k, k): v for k, v in changes.items()}


def new_draft_record(buyer_id: str, buyer_kind: BuyerKind, organization_id: str) -> dict:
    lookup, entity_set = _BUYER_LOOKUP[buyer_kind]
    return {
        f"{lookup}@odata.bind": bind(entity_set, buyer_id),
        "organization@odata.bind": bind("organizations", organization_id),
        "order_status": OrderStatus.DRAFT.value,
        "payment_status": PaymentStatus.UNPAID.value,
        "subtotal": 0,
        "tax_amount": 0,
        "total": 0,
    }


def buyer_filter(buyer_id: str, buyer_kind: BuyerKind) -> str:
    lookup, _ = _BUYER_LOOKUP[buyer_kind]
    return f"_{lookup}_value eq {odata_quote(buyer_id)}"


def record_to_order(row: dict) -> Order:
    if row.get("_affiliate_value"):
        buyer_kind, buyer_id = BuyerKind.AFFILIATE, row["_affiliate_value"]
    else:
        buyer_kind, buyer_id = BuyerKind.ACCOUNT, row.get("_account_value") or ""
    return Order(
        id=row["orderid"],
        buyer_id=buyer_id,
        buyer_kind=buyer_kind,
        organization_id=row.get("_organization_value") or "",
        order_status=OrderStatus(row.get("order_status") or OrderStatus.DRAFT.value),
        payment_status=PaymentStatus(row.get("payment_status") or PaymentStatus.UNPAID.value),
        subtotal=row.get("subtotal") or 0,
        tax_amount=row.get("tax_amount") or 0,
        total=row.get("total") or 0,
        created_on=row.get("createdon"),
    )
