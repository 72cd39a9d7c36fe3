import bleach


class HTMLSanitizer:
    """Limpieza de HTML para los textos libres del perfil y los proyectos."""

    @staticmethod
    def sanitize_strict(text: str) -> str:
        """Elimina TODOS los tags HTML; los campos del portfolio son texto plano."""
        if not text:
            return ""
        return bleach.clean(text, tags=[], strip=True).strip()
