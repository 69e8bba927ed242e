from fastapi.templating import Jinja2Templates

from storefront.config import TEMPLATES_DIR

# Autoescape HTML actif (extension .html): seul échappement appliqué aux valeurs de formulaire
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_to_string(name: str, **context) -> str:
    return templates.get_template(name).render(**context)
