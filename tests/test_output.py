import re
from datetime import date

import matplotlib.pyplot as plt
import pandas as pd

from ega_core import output, report


def test_output_dir_and_file_naming(tmp_path) -> None:
    output_dir = output.get_output_dir('ega', base=str(tmp_path))
    today = date.today().isoformat()
    assert output_dir.name == f'{today}-ega'
    assert output_dir.is_dir()

    path = output.save_csv(pd.DataFrame({'a': [1, 2]}), output_dir, 'ega', 'network')
    assert path.name == f'{today}-ega-network.csv'
    assert output.list_outputs(output_dir) == [path.name]


def test_save_figure_closes_figure(tmp_path) -> None:
    fig, ax = plt.subplots()
    ax.plot([1, 2], [2, 1])
    path = output.save_figure(fig, tmp_path, 'ega', 'scree', dpi=50)
    assert path.exists()
    assert not plt.fignum_exists(fig.number)


def test_figure_to_base64_is_png() -> None:
    fig, ax = plt.subplots()
    ax.plot([0, 1], [0, 1])
    encoded = output.figure_to_base64(fig, dpi=40)
    plt.close(fig)
    assert encoded.startswith('iVBORw0KGgo')


def test_list_outputs_missing_directory(tmp_path) -> None:
    assert output.list_outputs(tmp_path / 'missing') == []


def test_html_report_has_table_of_contents(tmp_path) -> None:
    sections = [
        {'title': 'Correlation matrix', 'text': ['Mean |r| < 1'],
         'tables': [('Correlations', pd.DataFrame([[1.0, 0.5], [0.5, 1.0]]))]},
        {'title': 'Exploratory graph analysis', 'figures': [('Network', 'AAAA')]},
        {'title': 'Correlation matrix'},
    ]
    html = report.build_html_report(sections, title='EGA <test>')

    anchors = re.findall(r'<a href="#([^"]+)">', html)
    assert anchors == ['correlation-matrix', 'exploratory-graph-analysis', 'correlation-matrix-3']
    for anchor in anchors:
        assert f'id="{anchor}"' in html
    assert 'EGA &lt;test&gt;' in html
    assert 'Mean |r| &lt; 1' in html
    assert 'data:image/png;base64,AAAA' in html

    path = output.save_html(html, tmp_path, 'ega')
    assert path.suffix == '.html'


def test_slugify() -> None:
    assert report.slugify('Number of factors') == 'number-of-factors'
    assert report.slugify('!!!') == 'section'
