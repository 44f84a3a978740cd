"""Media helpers: sniffing, probing, remuxing, object keys and asset references."""
