"""Shared fixtures for the tractree test suite."""

import pandas as pd
import pytest

RANK_COLUMNS = ['Rank1', 'Rank2', 'Rank3', 'Rank4', 'Rank5', 'Rank6', 'Rank7']

FIRMICUTES = ['k__Bacteria', 'p__Firmicutes', 'c__Bacilli', 'o__Bacillales', 'f__Bacillaceae']
ACIDOBACTERIA = ['k__Bacteria', 'p__Acidobacteria', 'c__Acidobacteriia',
                 'o__Acidobacteriales', 'f__Koribacteraceae']

@pytest.fixture
def soil_taxonomy() -> pd.DataFrame:
    """Five OTUs in the layout of the 88 soils taxonomy table."""
    rows = {
        'OTU1': FIRMICUTES + ['g__', 's__'],
        'OTU2': FIRMICUTES + ['g__', 's__'],
        'OTU3': ACIDOBACTERIA + ['g__Candidatus Koribacter', 's__'],
        'OTU4': ACIDOBACTERIA + ['g__Edaphobacter', 's__'],
        'OTU5': ACIDOBACTERIA + ['g__Edaphobacter', 's__modestum'],
    }
    df = pd.DataFrame.from_dict(rows, orient='index', columns=RANK_COLUMNS)
    df.index.name = 'OTU'
    return df

@pytest.fixture
def three_genera_taxonomy() -> pd.DataFrame:
    """Three features sharing a family and splitting into two named genera."""
    family = ['k__Bacteria', 'p__Proteobacteria', 'c__Alphaproteobacteria',
              'o__Rhizobiales', 'f__Bradyrhizobiaceae']
    return pd.DataFrame(
        [
            ['F1'] + family + ['g__Bradyrhizobium', 's__elkanii'],
            ['F2'] + family + ['g__Bradyrhizobium', 's__japonicum'],
            ['F3'] + family + ['g__Rhodopseudomonas', 's__palustris'],
        ],
        columns=['feature'] + ['kingdom', 'phylum', 'class', 'order', 'family', 'genus', 'species']
    )

@pytest.fixture
def soil_counts() -> pd.DataFrame:
    """Counts for the soil OTUs, samples as rows."""
    return pd.DataFrame(
        {
            'OTU1': [0, 3, 7],
            'OTU2': [1, 0, 2],
            'OTU3': [15, 20, 0],
            'OTU4': [4, 4, 4],
            'OTU5': [0, 0, 1],
        },
        index=['BZ1', 'CA1', 'MT2']
    )
