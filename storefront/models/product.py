from beanie import Document, Indexed


class ProductDocument(Document):
    product_id: Indexed(str, unique=True)
    name: str
    description: str = ""
    price: str  # decimal string, e.g. "2499.00"
    category: str = ""
    image: str = ""
    stock: int = 10

    class Settings:
        name = "products"
        indexes = [[("category", 1)]]
