"""
Data Loading and Preprocessing Module
======================================

Functions for loading the item responses, selecting item columns,
and standardizing data for analysis.
"""

import pandas as pd
import numpy as np
from sklearn.preprocessing import StandardScaler

from . import config


def load_holzinger_swineford(items: list[str] = None) -> pd.DataFrame:
    """
    Load the Holzinger-Swineford (1939) sample bundled with semopy.

    The full table carries demographics (sex, age, school, grade) next
    to the nine test scores; only the item columns are returned.

    Parameters:
        items: Item columns to keep. Defaults to config.DEFAULT_ITEMS

    Returns:
        DataFrame with one row per examinee and one column per item
    """
    from semopy.examples import holzinger39

    if items is None:
        items = config.DEFAULT_ITEMS

    df = holzinger39.get_data()
    print(f"Loaded Holzinger-Swineford sample: {len(df):,} examinees")
    return select_items(df, items)


def load_csv(filepath: str) -> pd.DataFrame:
    """
    Load CSV file with basic validation.

    Parameters:
        filepath: Path to CSV file

    Returns:
        DataFrame with loaded data
    """
    df = pd.read_csv(filepath)
    print(f"Loaded {len(df):,} records with {len(df.columns)} columns from {filepath}")
    return df


def select_items(df: pd.DataFrame, items: list[str] = None) -> pd.DataFrame:
    """
    Keep the item columns and drop incomplete rows (listwise deletion).

    Parameters:
        df: Input DataFrame
        items: Item columns. Defaults to config.DEFAULT_ITEMS

    Returns:
        DataFrame with only complete, numeric item columns
    """
    if items is None:
        items = config.DEFAULT_ITEMS

    missing = [col for col in items if col not in df.columns]
    if missing:
        raise KeyError(f"Item columns not found in data: {missing}")
    if len(items) < 2:
        raise ValueError(f"At least 2 items are required, got {len(items)}")

    data = df[list(items)].apply(pd.to_numeric, errors='coerce')
    complete = data.dropna()
    dropped = len(data) - len(complete)
    if dropped:
        print(f"Dropped {dropped:,} incomplete records (listwise)")

    print(f"Items selected: {len(items)} variables, {len(complete):,} complete records")
    return complete.astype(float)


def load_dataset(filepath: str = None, items: list[str] = None) -> pd.DataFrame:
    """
    Convenience function: load item data from a CSV or the bundled sample.

    Parameters:
        filepath: Path to CSV file. None loads the Holzinger-Swineford sample
        items: Item columns to analyze

    Returns:
        DataFrame of complete item responses
    """
    if filepath is None:
        filepath = config.DEFAULT_DATA_FILE

    if filepath is None:
        return load_holzinger_swineford(items)

    df = load_csv(filepath)
    return select_items(df, items)


def standardize_features(
    df: pd.DataFrame,
    columns: list[str] = None
) -> tuple[np.ndarray, pd.DataFrame, pd.Index, StandardScaler]:
    """
    Z-score normalize selected columns.

    Parameters:
        df: Input DataFrame
        columns: Columns to standardize. Defaults to every column of df

    Returns:
        Tuple of (scaled array, scaled DataFrame, valid indices, fitted scaler)
    """
    if columns is None:
        columns = list(df.columns)

    # Get rows with complete data
    data = df[columns].dropna()
    valid_indices = data.index

    scaler = StandardScaler()
    scaled_array = scaler.fit_transform(data)
    scaled_df = pd.DataFrame(scaled_array, columns=columns, index=valid_indices)

    print(f"Standardization complete for {len(data):,} records (mean≈0, std≈1 for each variable)")

    return scaled_array, scaled_df, valid_indices, scaler


def describe_items(df: pd.DataFrame) -> pd.DataFrame:
    """Descriptive statistics per item (n, mean, sd, range, skew, kurtosis)."""
    table = pd.DataFrame({
        'label': [config.get_item_label(col) for col in df.columns],
        'n': df.count(),
        'mean': df.mean(),
        'sd': df.std(),
        'min': df.min(),
        'max': df.max(),
        'skew': df.skew(),
        'kurtosis': df.kurt(),
    }, index=df.columns)
    return table.round(3)
