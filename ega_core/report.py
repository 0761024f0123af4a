"""
Report Module
=============

Text and HTML reports for the EGA walkthrough. The HTML report opens
with a table of contents linking to one anchored section per step.
"""

import html
import re
from datetime import date

import pandas as pd

from . import config


def build_text_report(results: dict, params: dict) -> str:
    """Generate text report summarizing the walkthrough."""
    data = results['data']
    ega_result = results['ega']
    dims = results['dimensionality']
    efa_results = results['efa']

    lines = [
        "=" * 70,
        "EXPLORATORY GRAPH ANALYSIS REPORT",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params.get('data_file') or 'Holzinger-Swineford (1939) sample'}",
        f"Items: {', '.join(data.columns)}",
        f"Observations: {len(data):,}",
        f"Correlation method: {params.get('corr_method')}",
        f"EGA model: {ega_result['model']}",
        "",
        "EXPLORATORY GRAPH ANALYSIS",
        "-" * 50,
        f"Estimated dimensions: {ega_result['n_dim']}",
    ]
    for label, items in ega_result['communities'].items():
        lines.append(f"  Dimension {label}: {', '.join(items)}")

    lines.extend([
        "",
        "NUMBER OF FACTORS",
        "-" * 50,
        f"Kaiser criterion: {dims['kaiser']}",
        f"Parallel analysis: {dims['parallel']}",
        f"Optimal coordinates: {dims['optimal_coordinates']}",
        f"Acceleration factor: {dims['acceleration_factor']}",
        "",
        f"FACTOR ANALYSIS ({efa_results['n_factors']} factors, {efa_results['method']}, {efa_results['rotation']})",
        "-" * 50,
        efa_results['loadings'].round(3).to_string(),
        "",
        f"Total variance explained: {efa_results['variance'].loc['Cumulative_Var'].iloc[-1]*100:.1f}%",
    ])

    cross = results.get('cross_loadings')
    if cross is not None and len(cross):
        lines.extend(["", "Cross-loading items:"])
        for _, row in cross.iterrows():
            lines.append(
                f"  {row['item']}: {row['primary_factor']} {row['primary_loading']:.2f}, "
                f"{row['secondary_factor']} {row['secondary_loading']:.2f}"
            )

    comparison = results.get('comparison')
    if comparison is not None:
        lines.extend([
            "",
            "EGA vs EFA",
            "-" * 50,
            f"Adjusted Rand index: {comparison['adjusted_rand_index']:.3f}",
        ])

    lines.extend(["", "=" * 70])
    return "\n".join(lines)


def slugify(title: str) -> str:
    """Anchor id for a section title."""
    slug = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')
    return slug or 'section'


def build_html_report(sections: list[dict], title: str = 'Exploratory Graph Analysis') -> str:
    """
    Assemble a standalone HTML report with a table of contents.

    Parameters:
        sections: List of dicts with 'title' and optional 'text' (list of
            paragraphs), 'tables' (list of (caption, DataFrame)) and
            'figures' (list of (caption, base64 PNG))
        title: Document title

    Returns:
        HTML document as a string
    """
    toc = []
    body = []
    used = set()

    for number, section in enumerate(sections, 1):
        anchor = slugify(section['title'])
        while anchor in used:
            anchor = f"{anchor}-{number}"
        used.add(anchor)

        heading = f"{number}. {section['title']}"
        toc.append(f'<li><a href="#{anchor}">{html.escape(heading)}</a></li>')

        parts = [f'<h2 id="{anchor}">{html.escape(heading)}</h2>']
        for paragraph in section.get('text', []):
            parts.append(f'<p>{html.escape(paragraph)}</p>')
        for caption, table in section.get('tables', []):
            parts.append(f'<h3>{html.escape(caption)}</h3>')
            parts.append(_table_html(table))
        for caption, image in section.get('figures', []):
            parts.append(
                f'<figure><img src="data:image/png;base64,{image}" alt="{html.escape(caption)}">'
                f'<figcaption>{html.escape(caption)}</figcaption></figure>'
            )
        body.append('<section>' + '\n'.join(parts) + '</section>')

    return "\n".join([
        '<!DOCTYPE html>',
        '<html lang="en">',
        '<head>',
        '<meta charset="utf-8">',
        f'<title>{html.escape(title)}</title>',
        '<style>',
        'body { font-family: sans-serif; max-width: 960px; margin: 2em auto; color: #2c3e50; }',
        'table { border-collapse: collapse; margin: 1em 0; }',
        'th, td { border: 1px solid #d5d8dc; padding: 4px 8px; text-align: right; }',
        'nav { background: #f4f6f7; padding: 1em 2em; }',
        'img { max-width: 100%; }',
        '</style>',
        '</head>',
        '<body>',
        f'<h1>{html.escape(title)}</h1>',
        f'<p>Generated {date.today().isoformat()}</p>',
        '<nav><h2>Contents</h2><ol>',
        *toc,
        '</ol></nav>',
        *body,
        '</body>',
        '</html>',
    ])


def _table_html(table) -> str:
    if isinstance(table, pd.Series):
        table = table.to_frame()
    return table.to_html(float_format=lambda v: f'{v:.3f}', border=0, na_rep='NA')


def item_legend() -> pd.DataFrame:
    """Item -> test name table for the report."""
    return pd.DataFrame(
        {'test': list(config.ITEM_LABELS.values())},
        index=pd.Index(list(config.ITEM_LABELS.keys()), name='item'),
    )
