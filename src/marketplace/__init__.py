"""Cattle marketplace core: order lifecycle, stock coordination, receipts and ratings."""
