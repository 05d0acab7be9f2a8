"""HTTP layer for the ShopForge API"""
