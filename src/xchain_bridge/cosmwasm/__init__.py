"""CosmWasm token bridge builder and LCD query client."""
