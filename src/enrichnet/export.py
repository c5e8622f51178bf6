from pathlib import Path
from typing import Dict

import polars as pl
from loguru import logger
from pyexcelerate import Workbook


def flatten_lists(df: pl.DataFrame, separator: str = ";") -> pl.DataFrame:
    """Join list columns (e.g. leading-edge genes) into delimited strings."""
    return df.with_columns([
        pl.col(name).list.join(separator).alias(name)
        for name, dtype in df.schema.items()
        if isinstance(dtype, pl.List)
    ])


def write_tsv(df: pl.DataFrame, filename: Path) -> Path:
    flatten_lists(df).write_csv(filename, separator="\t")
    logger.info(f"Wrote {filename}")
    return filename


def write_xlsx(dataframes: Dict[str, pl.DataFrame], filename: Path) -> Path:
    wb = Workbook()
    for sheet_name, dataframe in dataframes.items():
        logger.info(f"Writing {sheet_name} with shape {dataframe.shape}")
        dataframe = flatten_lists(dataframe)
        rows = [dataframe.columns]
        for row in dataframe.iter_rows(named=False):
            rows.append(list(row))

        wb.new_sheet(sheet_name, data=rows)
    wb.save(filename)

    logger.info(f"Wrote {filename}")
    return filename
