from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from frontend.config import ROLE_LABELS, Role

TEMPLATES_DIR = Path(__file__).resolve().parent / 'templates'

environment = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(['html']),
    trim_blocks=True,
    lstrip_blocks=True,
)


def role_label(role: str | None) -> str:
    try:
        return ROLE_LABELS[Role(role)]
    except ValueError:
        return (role or '').capitalize()


def format_money(value: float | None, currency: str = 'COP') -> str:
    if value is None:
        return ''
    if currency == 'COP':
        return '$' + f'{value:,.0f}'.replace(',', '.') + ' COP'
    return f'${value:,.2f} {currency}'


environment.filters['role_label'] = role_label
environment.filters['money'] = format_money


def render(template_name: str, **context) -> str:
    return environment.get_template(template_name).render(**context)
