"""Global synonym dictionary loaded into a fresh database."""

# (field_type, synonym, confidence_weight)
GLOBAL_SYNONYMS: list[tuple[str, str, float]] = [
    ("quantity", "quantity", 1.0),
    ("quantity", "qty", 1.0),
    ("quantity", "units", 1.0),
    ("quantity", "cases", 1.0),
    ("quantity", "boxes", 0.9),
    ("quantity", "count", 0.8),
    ("quantity", "volume", 0.8),
    ("quantity", "pieces", 0.9),
    ("quantity", "pcs", 0.9),
    ("quantity", "units sold", 1.0),
    ("quantity", "qty sold", 1.0),
    ("quantity", "total units", 0.9),
    ("quantity", "ship qty", 0.8),
    ("revenue", "revenue", 1.0),
    ("revenue", "amount", 1.0),
    ("revenue", "total", 0.7),
    ("revenue", "sales", 0.9),
    ("revenue", "price", 0.7),
    ("revenue", "extended price", 1.0),
    ("revenue", "total amount", 1.0),
    ("revenue", "total sales", 1.0),
    ("revenue", "sale amount", 1.0),
    ("revenue", "net amount", 0.9),
    ("revenue", "invoice amount", 1.0),
    ("revenue", "line total", 0.9),
    ("revenue", "ext price", 0.9),
    ("date", "date", 0.8),
    ("date", "order date", 1.0),
    ("date", "invoice date", 1.0),
    ("date", "ship date", 0.9),
    ("date", "sale date", 1.0),
    ("date", "transaction date", 1.0),
    ("date", "posted date", 0.9),
    ("date", "delivery date", 0.8),
    ("account", "account", 1.0),
    ("account", "customer", 1.0),
    ("account", "client", 1.0),
    ("account", "buyer", 0.9),
    ("account", "account name", 1.0),
    ("account", "customer name", 1.0),
    ("account", "ship to", 0.9),
    ("account", "sold to", 0.9),
    ("account", "bill to", 0.8),
    ("account", "acct", 0.9),
    ("account", "cust", 0.9),
    ("account", "store", 0.7),
    ("product", "product", 1.0),
    ("product", "item", 1.0),
    ("product", "sku", 1.0),
    ("product", "product name", 1.0),
    ("product", "item name", 1.0),
    ("product", "description", 0.8),
    ("product", "item description", 0.9),
    ("product", "item number", 1.0),
    ("product", "product code", 1.0),
    ("product", "item code", 1.0),
    ("order_id", "order id", 1.0),
    ("order_id", "order number", 1.0),
    ("order_id", "transaction id", 0.9),
    ("order_id", "invoice number", 0.9),
    ("order_id", "po number", 0.8),
    ("order_id", "order no", 1.0),
    ("category", "category", 1.0),
    ("category", "product category", 1.0),
    ("category", "class", 0.8),
    ("category", "product type", 0.9),
    ("region", "region", 1.0),
    ("region", "territory", 1.0),
    ("region", "zone", 0.9),
    ("region", "district", 0.9),
    ("region", "sales region", 1.0),
    ("distributor", "distributor", 1.0),
    ("distributor", "wholesaler", 1.0),
    ("distributor", "distributor name", 1.0),
    ("representative", "representative", 1.0),
    ("representative", "rep", 1.0),
    ("representative", "sales rep", 1.0),
    ("representative", "salesperson", 1.0),
    ("brand", "brand", 1.0),
    ("brand", "brand name", 1.0),
    ("brand", "supplier", 0.8),
]
