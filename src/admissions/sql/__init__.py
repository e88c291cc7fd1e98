"""SQL schema and composable query helpers."""
