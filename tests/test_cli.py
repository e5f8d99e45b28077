"""End-to-end tests for the command-line interface."""

import pandas as pd
import pytest
from scipy import sparse

from tractree import __version__
from tractree.cli import create_parser, main

@pytest.fixture
def taxonomy_path(tmp_path, soil_taxonomy):
    path = tmp_path / 'taxonomy.tsv'
    soil_taxonomy.to_csv(path, sep='\t')
    return path

def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        create_parser().parse_args(['--version'])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out

def test_command_is_required():
    with pytest.raises(SystemExit):
        create_parser().parse_args([])

def test_lineages_to_stdout(taxonomy_path, capsys):
    assert main(['lineages', str(taxonomy_path)]) == 0
    lines = capsys.readouterr().out.strip().split('\n')
    assert len(lines) == 5
    assert lines[0] == ('OTU1\tk__Bacteria::p__Firmicutes::c__Bacilli::o__Bacillales'
                        '::f__Bacillaceae::g__1::s__1::OTU1')

def test_lineages_to_file(taxonomy_path, tmp_path):
    out = tmp_path / 'lineages.tsv'
    assert main(['lineages', str(taxonomy_path), '--output', str(out), '--delimiter', '|']) == 0
    written = pd.read_csv(out, sep='\t', index_col='feature_id')
    assert written.loc['OTU5', 'lineage'].endswith('|g__Edaphobacter|s__modestum|OTU5')

def test_a_matrix_dense(taxonomy_path, tmp_path):
    out = tmp_path / 'A.tsv'
    assert main(['a-matrix', str(taxonomy_path), '-o', str(out), '--include-root']) == 0
    a_matrix = pd.read_csv(out, sep='\t', index_col=0, keep_default_na=False)
    assert a_matrix.shape == (24, 5)
    assert a_matrix.loc[''].sum() == 5

def test_a_matrix_sparse_collapsed(taxonomy_path, tmp_path):
    out = tmp_path / 'A.npz'
    assert main(['a-matrix', str(taxonomy_path), '-o', str(out), '--collapse', '--feature-major']) == 0
    assert sparse.load_npz(out).shape == (5, 9)
    assert (tmp_path / 'A.rows.txt').read_text(encoding='utf8').split() == [
        'OTU1', 'OTU2', 'OTU3', 'OTU4', 'OTU5'
    ]

def test_tree(taxonomy_path, tmp_path):
    out = tmp_path / 'tree.nwk'
    assert main(['tree', str(taxonomy_path), '-o', str(out), '--collapse']) == 0
    assert out.read_text(encoding='utf8').strip().endswith(';')

def test_aggregate(taxonomy_path, tmp_path, soil_counts):
    counts_path = tmp_path / 'counts.tsv'
    soil_counts.T.to_csv(counts_path, sep='\t')
    out = tmp_path / 'aggregated.tsv'
    assert main(['aggregate', str(taxonomy_path), str(counts_path), '-o', str(out),
                 '--collapse', '--pseudo-count', '0.5']) == 0
    aggregated = pd.read_csv(out, sep='\t', index_col='sample')
    assert list(aggregated.index) == ['BZ1', 'CA1', 'MT2']
    assert aggregated.shape == (3, 9)

def test_bad_table_returns_error_code(tmp_path, soil_taxonomy):
    path = tmp_path / 'short.tsv'
    soil_taxonomy.iloc[:, :4].to_csv(path, sep='\t')
    assert main(['a-matrix', str(path), '-o', str(tmp_path / 'A.tsv')]) == 1
    assert not (tmp_path / 'A.tsv').exists()

def test_missing_table_returns_error_code(tmp_path):
    assert main(['lineages', str(tmp_path / 'absent.tsv')]) == 1

def test_invalid_pseudo_count_returns_error_code(taxonomy_path, tmp_path):
    assert main(['aggregate', str(taxonomy_path), str(tmp_path / 'c.tsv'),
                 '-o', str(tmp_path / 'agg.tsv'), '--pseudo-count', '-1']) == 1

def test_aggregate_matches_zero_padded_ids(tmp_path, soil_taxonomy, soil_counts):
    padded = {'OTU%d' % i: '%03d' % i for i in range(1, 6)}
    taxonomy_path = tmp_path / 'taxonomy.tsv'
    soil_taxonomy.rename(index=padded).to_csv(taxonomy_path, sep='\t')
    counts_path = tmp_path / 'counts.tsv'
    soil_counts.rename(columns=padded).T.to_csv(counts_path, sep='\t')
    out = tmp_path / 'aggregated.tsv'
    assert main(['aggregate', str(taxonomy_path), str(counts_path), '-o', str(out)]) == 0
    aggregated = pd.read_csv(out, sep='\t', index_col='sample')
    assert aggregated.shape == (3, 23)
    assert any(column.endswith('::001') for column in aggregated.columns)
