# provide dataclass models

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, Tuple

Role = Literal["shopper", "admin"]

ProductStatus = Literal["AVAILABLE", "ON_SALE", "OUT_OF_STOCK", "DISCONTINUED"]
PRODUCT_STATUSES: Tuple[str, ...] = (
    "AVAILABLE",
    "ON_SALE",
    "OUT_OF_STOCK",
    "DISCONTINUED",
)

Category = Literal["PREMIER_LEAGUE", "LA_LIGA", "SERIE_A", "INTERNATIONAL", "OTHER"]
CATEGORIES: Tuple[str, ...] = (
    "PREMIER_LEAGUE",
    "LA_LIGA",
    "SERIE_A",
    "INTERNATIONAL",
    "OTHER",
)

SIZES: Tuple[str, ...] = ("S", "M", "L", "XL", "XXL")

OrderStatus = Literal["PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED"]


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    email: str
    phone: str
    address: str
    role: Role
    created_at: datetime


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    team: str
    price: float
    image: str
    description: str
    stock: int
    status: ProductStatus
    category: Category
    sizes: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CartLine:
    product_id: str
    product_name: str  # copied at add time
    unit_price: float  # copied at add time, never refreshed
    quantity: int
    image: str
    size: str

    @property
    def key(self) -> Tuple[str, str]:
        return self.product_id, self.size

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @classmethod
    def from_dict(cls, d: dict) -> "CartLine":
        """Build a line from its JSON form (order items, persisted cart)."""
        return cls(
            product_id=str(d["product_id"]),
            product_name=str(d["product_name"]),
            unit_price=float(d["unit_price"]),
            quantity=int(d["quantity"]),
            image=str(d.get("image", "")),
            size=str(d["size"]),
        )


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    user_name: str
    user_email: str
    user_phone: str
    items: Tuple[CartLine, ...]
    total_amount: float
    status: OrderStatus
    created_at: datetime
    shipping_address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Review:
    id: str
    product_id: str
    user_id: str
    user_name: str
    rating: int
    comment: str
    created_at: datetime


@dataclass(frozen=True)
class HeroSlide:
    id: str
    badge: str
    title: str
    description: str
    button_text: str = "Shop Now"
    accent_color: str = "#064e3b"
    display_order: int = 1


@dataclass(frozen=True)
class SiteSettings:
    id: str = "global"
    about_us: str = ""
    instagram_handle: str = ""
    whatsapp_number: str = ""
    footer_tagline: str = ""
    payment_qr_code: Optional[str] = None
    upi_id: Optional[str] = None
    gpay_number: Optional[str] = None
    paytm_number: Optional[str] = None


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def maps_url(self) -> str:
        return f"https://www.google.com/maps?q={self.latitude},{self.longitude}"

