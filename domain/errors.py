class RecipeBookError(Exception):
    pass


class InvalidPayload(RecipeBookError, ValueError):
    """Request body failed validation."""


class InvalidPath(RecipeBookError, ValueError):
    pass
