import uuid

from django.db import models


class Category(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "categories"
        ordering = ["sort_order", "name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class Product(models.Model):
    IMAGE_SLOTS = (("image", "image_type"), ("image_2", "image_2_type"), ("image_3", "image_3_type"))

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True, default="")
    short_description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    compare_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    cost_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    dimensions = models.CharField(max_length=50, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    is_bestseller = models.BooleanField(default=False)
    meta_title = models.CharField(max_length=60, blank=True, null=True)
    meta_description = models.CharField(max_length=160, blank=True, null=True)
    sort_order = models.IntegerField(default=0)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    image = models.BinaryField(blank=True, null=True)
    image_type = models.CharField(max_length=50, blank=True, null=True)
    image_2 = models.BinaryField(blank=True, null=True)
    image_2_type = models.CharField(max_length=50, blank=True, null=True)
    image_3 = models.BinaryField(blank=True, null=True)
    image_3_type = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(price__gte=0), name="product_price_non_negative"),
            models.CheckConstraint(condition=models.Q(stock_quantity__gte=0), name="product_stock_non_negative"),
        ]

    def __str__(self):
        return self.name

    def image_positions(self):
        """1-based positions of the slots that hold an image."""
        return [i for i, (data, _) in enumerate(self.IMAGE_SLOTS, start=1) if getattr(self, data)]

    def get_image(self, position):
        data_field, type_field = self.IMAGE_SLOTS[position - 1]
        return getattr(self, data_field), getattr(self, type_field)

    def set_images(self, files):
        """Replace the carousel with up to three ``(bytes, mime)`` pairs."""
        for data_field, type_field in self.IMAGE_SLOTS:
            setattr(self, data_field, None)
            setattr(self, type_field, None)
        for (data_field, type_field), (data, mime) in zip(self.IMAGE_SLOTS, files):
            setattr(self, data_field, data)
            setattr(self, type_field, mime)
