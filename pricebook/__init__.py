"""
pricebook - 家庭用の商品価格管理
"""

__version__ = "0.1.0"
