"""EVM token bridge builder, ABI fragments and read-only contract access."""
