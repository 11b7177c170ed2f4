"""Point-of-sale cart backend."""
