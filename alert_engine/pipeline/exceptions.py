"""Run-level exceptions."""


class PropertyNotFound(Exception):
    """The property does not exist or is not approved."""

    def __init__(self, property_id: str):
        super().__init__(f"Property {property_id} not found or not approved")
        self.property_id = property_id
