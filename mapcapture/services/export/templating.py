import datetime
from jinja2 import Environment, BaseLoader, TemplateError


class FilenameTemplater:
    """
    Handles generation of map filenames using Jinja2 templates.
    """

    def __init__(self) -> None:
        # Using a minimal environment for performance and safety
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, pattern: str, context: dict) -> str:
        """
        Renders the filename pattern with the provided context.
        Falls back to the plain map name if rendering fails.
        """
        fallback = str(context.get("name", "map"))
        try:
            template = self.env.from_string(pattern)
            render_context = {"date": datetime.date.today().isoformat(), **context}
            rendered = template.render(render_context).strip()
        except TemplateError:
            return fallback
        # Path separators would escape the export directory
        if not rendered or "/" in rendered or "\\" in rendered:
            return fallback
        return rendered
