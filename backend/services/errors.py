"""
Erreurs métier du service stock.

Les endpoints les traduisent en HTTPException ; le service ne connaît pas HTTP.
"""


class StockError(Exception):
    pass


class ValidationError(StockError):
    """Champ manquant/invalide, ou survente."""


class NotFoundError(StockError):
    """Entrée inconnue (ou appartenant à un autre utilisateur)."""
