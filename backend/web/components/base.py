"""
Base Component Class for RADAR UI Components

Every page fragment is a small Python class with a `render()` method. Plain
Python keeps escaping explicit and makes components trivial to unit test.
"""

from typing import Optional, Any
import html


class Component:
    """Base class for all UI components

    Benefits:
    - Type safety with IDE autocomplete
    - Easy testing with unit tests
    - Automatic HTML escaping for security
    """

    def render(self) -> str:
        """Render the component as an HTML string"""
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[str]) -> str:
        """Escape HTML entities; None renders as an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Build a CSS class string with conditional classes

        Example:
            >>> Component.classes("btn", "btn-primary", disabled=True, active=False)
            "btn btn-primary disabled"
        """
        classes = list(args)
        classes.extend(key for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments

        Example:
            >>> Component.attributes(id="pin", input_mode="numeric", disabled=True)
            'id="pin" input-mode="numeric" disabled'
        """
        result = []
        for key, value in attrs.items():
            # Trailing underscore for reserved names: class_ -> class, for_ -> for
            if key.endswith("_"):
                key = key[:-1]
            else:
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)
