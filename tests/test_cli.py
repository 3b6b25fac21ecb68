import pytest

import cdt_tools
from cdt_tools.cli import find_symbol, list_functions, main, setup_parser


def test_list_everything(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert 'air_pressure' in out
    assert 'ncwriteschema' in out
    assert out.startswith('atmosphere:')


def test_list_one_module(capsys):
    assert main(['--module', 'geo']) == 0
    out = capsys.readouterr().out
    assert 'near1' in out
    assert 'mann_kendall' not in out


def test_show_function_documentation(capsys):
    assert main(['mann_kendall']) == 0
    out = capsys.readouterr().out
    assert 'Mann-Kendall test for a monotonic trend' in out


def test_unknown_symbol(capsys):
    assert main(['not_a_function']) == 1
    assert 'not_a_function' in capsys.readouterr().err


def test_verbose_flag(capsys):
    assert main(['--verbose', 'near1']) == 0
    assert 'near1' in capsys.readouterr().out


def test_find_symbol_searches_subpackages():
    assert find_symbol('trend') is cdt_tools.trend
    assert find_symbol('apply_along_axis') is cdt_tools.utils.apply_along_axis
    with pytest.raises(LookupError):
        find_symbol('nothing_here')


def test_list_functions_summaries():
    lines = list_functions(('gridding',))
    assert lines[0].startswith('gridding:')
    assert any(line.strip().startswith('xyz2grid') for line in lines)


def test_parser_rejects_unknown_module():
    with pytest.raises(SystemExit):
        setup_parser().parse_args(['--module', 'plotting'])
