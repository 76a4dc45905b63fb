"""Order notification consumer."""
