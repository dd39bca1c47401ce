from dataclasses import dataclass
from decimal import Decimal

from apps.catalog.models import Product
from apps.core.errors import NotFound, ValidationError

SESSION_KEY = "cart"


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    sku: str
    price: Decimal
    image: str
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Cart:
    """Per-session cart stored as plain JSON in ``session["cart"]``.

    Each entry keeps the product's name, SKU and price as they were when the
    line was first added; later catalog edits don't touch them.
    """

    def __init__(self, session):
        self.session = session
        self.items = dict(session.get(SESSION_KEY) or {})

    def _save(self):
        self.session[SESSION_KEY] = self.items
        if hasattr(self.session, "modified"):
            self.session.modified = True

    def add(self, product_id, quantity=1):
        quantity = int(quantity)
        if quantity < 1:
            raise ValidationError("Quantidade inválida")
        key = str(product_id)
        product = Product.objects.filter(pk=key, is_active=True).first()
        if product is None:
            raise NotFound("Produto não encontrado")

        if key in self.items:
            self.items[key] = {**self.items[key], "quantity": self.items[key]["quantity"] + quantity}
        else:
            first_image = product.image_positions()[:1]
            self.items[key] = {
                "product_id": key,
                "name": product.name,
                "sku": product.sku or "",
                "price": str(product.price),
                "image": f"/products/{key}/image/" if first_image else "",
                "quantity": quantity,
            }
        self._save()
        return self.items[key]

    def set_quantity(self, product_id, quantity):
        key = str(product_id)
        if key not in self.items:
            return
        quantity = int(quantity)
        if quantity <= 0:
            del self.items[key]
        else:
            self.items[key] = {**self.items[key], "quantity": quantity}
        self._save()

    def remove(self, product_id):
        if self.items.pop(str(product_id), None) is not None:
            self._save()

    def clear(self):
        self.items = {}
        self._save()

    def lines(self):
        return [
            CartLine(
                product_id=item["product_id"],
                name=item["name"],
                sku=item.get("sku") or "",
                price=Decimal(item["price"]),
                image=item.get("image") or "",
                quantity=int(item["quantity"]),
            )
            for item in self.items.values()
        ]

    def snapshot(self):
        return tuple(self.lines())

    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines()), Decimal("0.00"))

    @property
    def is_empty(self):
        return not self.items

    def item_count(self):
        return sum(int(item["quantity"]) for item in self.items.values())

    def __len__(self):
        return len(self.items)
