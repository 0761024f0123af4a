"""
EGA Walkthrough
===============

Runs Exploratory Graph Analysis on the Holzinger-Swineford cognitive
ability tests and compares it with classical Exploratory Factor Analysis.

Parameters:
    data_file       - Path to input CSV (None = bundled Holzinger-Swineford sample)
    items           - Item columns to analyze
    corr_method     - Correlation method
    model           - EGA network model ('glasso' or 'tmfg')
    n_factors       - Number of factors for EFA (None = parallel analysis)
    pa_reps         - Parallel analysis repetitions
    random_state    - Seed for parallel analysis and network layout
    save_outputs    - Write CSVs, figures and reports

Outputs:
    - Correlation heatmap, network plots, scree plot, loadings heatmaps (PNG)
    - Correlation, network, memberships, eigenvalues, loadings, scores (CSV)
    - Text report (TXT) and HTML report with table of contents (HTML)
"""

import argparse
import logging
import warnings

from . import config
from . import data, correlation, network, community, ega, dimensionality, efa, viz, output, report

logger = logging.getLogger(__name__)

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': config.DEFAULT_DATA_FILE,
    'items': config.DEFAULT_ITEMS,
    'corr_method': config.DEFAULT_CORR_METHOD,
    'model': config.DEFAULT_EGA_MODEL,
    'n_factors': None,  # None = parallel analysis
    'pa_reps': config.PA_REPS,
    'random_state': config.RANDOM_STATE,
    'output_base': config.DEFAULT_OUTPUT_BASE,
    'save_outputs': True,
}

TEST_NAME = 'ega'


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


# =============================================================================
# MAIN ANALYSIS
# =============================================================================
def run_analysis(params: dict) -> dict:
    """
    Run the EGA walkthrough pipeline.

    Parameters:
        params: Dictionary with analysis parameters (missing keys use DEFAULTS)

    Returns:
        Dictionary with all analysis results
    """
    params = {**DEFAULTS, **params}
    save = params['save_outputs']

    _banner("EXPLORATORY GRAPH ANALYSIS WALKTHROUGH")
    output_dir = output.get_output_dir(TEST_NAME, params['output_base']) if save else None

    # Step 1: Load data
    _banner("STEP 1: LOADING DATA")
    df = data.load_dataset(params['data_file'], params['items'])
    descriptives = data.describe_items(df)
    print(descriptives.to_string())

    # Step 2: Correlation matrix
    _banner("STEP 2: CORRELATION MATRIX")
    corr = correlation.correlation_matrix(df, params['corr_method'])
    corr_summary = correlation.correlation_summary(corr)

    # Step 3: Network estimation
    _banner("STEP 3: NETWORK ESTIMATION (EBICglasso)")
    glasso = network.ebic_glasso(corr, len(df))
    net_summary = network.network_summary(glasso['network'])

    # Step 4: Community detection
    _banner("STEP 4: COMMUNITY DETECTION (WALKTRAP)")
    clusters = community.walktrap(glasso['network'])

    # Step 5: Combined EGA
    _banner("STEP 5: EXPLORATORY GRAPH ANALYSIS")
    ega_result = ega.ega_from_correlation(corr, len(df), model=params['model'])
    net_loads = ega.network_loadings(ega_result['network'], ega_result['membership'])
    print("\nNetwork loadings:")
    print(net_loads.round(3).to_string())

    # Step 6: Number of factors
    _banner("STEP 6: NUMBER OF FACTORS")
    dims = dimensionality.determine_num_factors(
        df, n_reps=params['pa_reps'], random_state=params['random_state'], corr=corr
    )

    # Step 7: Exploratory factor analysis
    _banner("STEP 7: EXPLORATORY FACTOR ANALYSIS")
    factorability = efa.check_factorability(df)
    n_factors = params['n_factors']
    if n_factors is None:
        n_factors = max(dims['parallel'], 1)
    scaled_array, scaled_df, valid_indices, _ = data.standardize_features(df)
    efa_results = efa.run_efa(scaled_df, n_factors)
    factor_scores = efa.calculate_factor_scores(
        efa_results['factor_analyzer'], scaled_array, valid_indices
    )
    cross = efa.cross_loadings(efa_results['loadings'])
    if len(cross):
        print("\nCross-loading items:")
        print(cross.round(3).to_string(index=False))

    # Step 8: Compare EGA and EFA
    comparison = efa.compare_with_ega(
        ega_result['membership'], efa.primary_factors(efa_results['loadings'])
    )

    results = {
        'data': df,
        'descriptives': descriptives,
        'correlation': corr,
        'correlation_summary': corr_summary,
        'glasso': glasso,
        'network_summary': net_summary,
        'walktrap': clusters,
        'ega': ega_result,
        'network_loadings': net_loads,
        'dimensionality': dims,
        'factorability': factorability,
        'efa': efa_results,
        'factor_scores': factor_scores,
        'cross_loadings': cross,
        'comparison': comparison,
        'output_dir': output_dir,
    }

    if save:
        viz.setup_style()
        figures = {
            'correlation': viz.plot_correlation_heatmap(corr),
            'glasso-network': viz.plot_network(
                glasso['network'], clusters['membership'],
                title='EBICglasso network (walktrap communities)', seed=params['random_state']
            ),
            'ega-network': viz.plot_network(
                ega_result['network'], ega_result['membership'],
                title=f"EGA ({ega_result['model']}): {ega_result['n_dim']} dimensions",
                seed=params['random_state']
            ),
            'scree': viz.plot_scree(dims['eigenvalues'], dims['reference']),
            'loadings': viz.plot_loadings_heatmap(efa_results['loadings']),
            'network-loadings': viz.plot_loadings_heatmap(net_loads, title='Network Loadings'),
        }
        save_outputs(results, figures, params, output_dir)

        _banner("ANALYSIS COMPLETE")
        output.print_summary(output_dir)

    return results


def save_outputs(results: dict, figures: dict, params: dict, output_dir) -> None:
    """Write CSVs, figures, and the text and HTML reports."""
    output.save_csv(results['correlation'], output_dir, TEST_NAME, 'correlation', index=True)
    output.save_csv(results['glasso']['network'], output_dir, TEST_NAME, 'glasso-network', index=True)
    output.save_csv(results['glasso']['path'], output_dir, TEST_NAME, 'glasso-path')
    output.save_csv(ega.dimension_table(results['ega']), output_dir, TEST_NAME, 'dimensions')
    output.save_csv(results['network_loadings'], output_dir, TEST_NAME, 'network-loadings', index=True)
    output.save_csv(results['dimensionality']['table'], output_dir, TEST_NAME, 'eigenvalues')
    output.save_csv(efa.get_factorability_summary(results['factorability']), output_dir, TEST_NAME, 'factorability')
    output.save_csv(results['efa']['loadings'], output_dir, TEST_NAME, 'loadings', index=True)
    output.save_csv(results['efa']['communalities'], output_dir, TEST_NAME, 'communalities', index=True)
    output.save_csv(results['factor_scores'], output_dir, TEST_NAME, 'scores', index=True)

    sections = build_sections(results, figures)
    for suffix, fig in figures.items():
        output.save_figure(fig, output_dir, TEST_NAME, suffix)

    output.save_report(report.build_text_report(results, params), output_dir, TEST_NAME)
    output.save_html(report.build_html_report(sections), output_dir, TEST_NAME)


def build_sections(results: dict, figures: dict) -> list[dict]:
    """HTML report sections, one per walkthrough step."""
    def image(name):
        return output.figure_to_base64(figures[name]) if name in figures else None

    def figure_list(*pairs):
        return [(caption, image(name)) for caption, name in pairs if name in figures]

    ega_result = results['ega']
    dims = results['dimensionality']
    efa_results = results['efa']
    df = results['data']

    return [
        {
            'title': 'Data',
            'text': [f"{len(df):,} examinees, {df.shape[1]} cognitive ability tests."],
            'tables': [('Items', report.item_legend()), ('Descriptive statistics', results['descriptives'])],
        },
        {
            'title': 'Correlation matrix',
            'text': [f"Mean absolute correlation: {results['correlation_summary']['mean_abs_r']:.3f}."],
            'tables': [('Correlations', results['correlation'])],
            'figures': figure_list(('Correlation heatmap', 'correlation')),
        },
        {
            'title': 'Network estimation',
            'text': [
                f"EBICglasso selected lambda = {results['glasso']['lambda']:.4f} "
                f"(gamma = {results['glasso']['gamma']}), keeping {results['glasso']['n_edges']} edges."
            ],
            'tables': [('Partial correlation network', results['glasso']['network'])],
            'figures': figure_list(('EBICglasso network', 'glasso-network')),
        },
        {
            'title': 'Community detection',
            'text': [
                f"Walktrap found {results['walktrap']['n_communities']} communities "
                f"(modularity {results['walktrap']['modularity']:.3f})."
            ],
        },
        {
            'title': 'Exploratory graph analysis',
            'text': [f"EGA ({ega_result['model']}) estimated {ega_result['n_dim']} dimensions."],
            'tables': [
                ('Dimensions', ega.dimension_table(ega_result)),
                ('Network loadings', results['network_loadings']),
            ],
            'figures': figure_list(('EGA network', 'ega-network'), ('Network loadings', 'network-loadings')),
        },
        {
            'title': 'Number of factors',
            'text': [
                f"Kaiser criterion: {dims['kaiser']}; parallel analysis: {dims['parallel']}; "
                f"optimal coordinates: {dims['optimal_coordinates']}; "
                f"acceleration factor: {dims['acceleration_factor']}."
            ],
            'tables': [('Eigenvalues', dims['table'])],
            'figures': figure_list(('Scree plot', 'scree')),
        },
        {
            'title': 'Exploratory factor analysis',
            'text': [
                f"{efa_results['n_factors']} factors, {efa_results['method']} extraction, "
                f"{efa_results['rotation']} rotation."
            ],
            'tables': [
                ('Loadings', efa_results['loadings']),
                ('Communalities', efa_results['communalities']),
                ('Cross-loadings', results['cross_loadings']),
            ],
            'figures': figure_list(('Factor loadings', 'loadings')),
        },
        {
            'title': 'EGA and EFA compared',
            'text': [f"Adjusted Rand index: {results['comparison']['adjusted_rand_index']:.3f}."],
            'tables': [('EGA dimensions by EFA primary factor', results['comparison']['crosstab'])],
        },
    ]


# =============================================================================
# ENTRY POINT
# =============================================================================
def parse_args(argv=None) -> dict:
    """Command-line arguments as a params dict."""
    parser = argparse.ArgumentParser(
        prog='ega-walkthrough',
        description='Exploratory Graph Analysis and EFA on the Holzinger-Swineford tests.',
    )
    parser.add_argument('--data-file', default=DEFAULTS['data_file'],
                        help='CSV with item columns (default: bundled Holzinger-Swineford sample)')
    parser.add_argument('--items', nargs='+', default=DEFAULTS['items'])
    parser.add_argument('--corr-method', default=DEFAULTS['corr_method'], choices=config.CORR_METHODS)
    parser.add_argument('--model', default=DEFAULTS['model'], choices=config.EGA_MODELS)
    parser.add_argument('--n-factors', type=int, default=DEFAULTS['n_factors'])
    parser.add_argument('--pa-reps', type=int, default=DEFAULTS['pa_reps'])
    parser.add_argument('--seed', type=int, default=DEFAULTS['random_state'])
    parser.add_argument('--output-base', default=DEFAULTS['output_base'])
    parser.add_argument('--no-save', action='store_true', help='Print results without writing files')
    args = parser.parse_args(argv)

    return {
        'data_file': args.data_file,
        'items': args.items,
        'corr_method': args.corr_method,
        'model': args.model,
        'n_factors': args.n_factors,
        'pa_reps': args.pa_reps,
        'random_state': args.seed,
        'output_base': args.output_base,
        'save_outputs': not args.no_save,
    }


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    warnings.filterwarnings('ignore')  # Suppress numerical warnings for cleaner output

    params = parse_args(argv)
    logger.info('Running walkthrough with model=%s, corr_method=%s', params['model'], params['corr_method'])
    run_analysis(params)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
