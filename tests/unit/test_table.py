"""
Tests for ResultTable loading, navigation and accessors.
"""
import datetime

import numpy as np
import pandas as pd
import pytest
from rowset import ResultTable, load
from rowset.exceptions import NoCurrentRowError, ParseError, StreamFailure
from rowset.exceptions import UnknownColumnError, UnsupportedConversionError
from rowset.types import ZERO_TIME, Column


def test_load_buffers_and_closes(mixed_stream):
    table = ResultTable.load(mixed_stream)
    assert mixed_stream.closed == 1
    assert len(table) == table.rowcount == 2
    assert table.cursor == -1
    assert table.names == ['id', 'user_name', 'score', 'created', 'note', 'blob']
    assert table.columns[0] == Column('id', 'BIGINT')


def test_load_failure_closes_stream(make_stream):
    stream = make_stream([('id', 'INT')], [(1,), (2,), (3,)], fail_at=2)
    with pytest.raises(StreamFailure) as exc:
        ResultTable.load(stream)
    assert stream.closed == 1
    assert str(exc.value) == 'connection reset by peer'
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_load_rejects_ragged_rows(make_stream):
    stream = make_stream([('a', 'INT'), ('b', 'INT')], [(1, 2), (3,)])
    with pytest.raises(StreamFailure):
        ResultTable.load(stream)
    assert stream.closed == 1


def test_load_type_name_overrides(make_stream):
    stream = make_stream([('id', ''), ('name', '')], [(1, 'a')])
    table = load(stream, type_names={'id': 'INT'})
    assert table.columns[0].type_name == 'INT'
    assert table.columns[1].type_name == ''


def test_load_rejects_non_stream():
    with pytest.raises(TypeError):
        ResultTable.load(42)


def test_next_exhaustion(make_stream):
    table = load(make_stream([('id', 'INT')], [(1,), (2,), (3,)]))
    assert [table.next() for _ in range(3)] == [True, True, True]
    assert table.next() is False
    assert table.next() is False
    assert table.next() is False


def test_next_empty_table(make_stream):
    table = load(make_stream([('id', 'INT')], []))
    assert table.next() is False
    assert table.to_frame().columns.tolist() == ['id']


def test_seek(make_stream):
    table = load(make_stream([('id', 'INT')], [(1,), (2,), (3,)]))
    assert table.seek(2)
    assert table.get_int('id') == 3
    assert not table.seek(-1)
    assert not table.seek(3)
    assert table.cursor == 2
    assert table.seek(0)
    assert table.get_int('id') == 1


def test_seek_restarts_after_exhaustion(make_stream):
    table = load(make_stream([('id', 'INT')], [(1,)]))
    assert table.next()
    assert not table.next()
    assert table.seek(0)
    assert table.get_int('id') == 1


def test_name_at(mixed_stream):
    table = load(mixed_stream)
    assert table.name_at(0) == 'id'
    assert table.name_at(5) == 'blob'
    assert table.name_at(6) == ''
    assert table.name_at(-1) == ''


def test_typed_getters(mixed_stream):
    table = load(mixed_stream)
    assert table.next()
    assert table.get_int64('id') == 42
    assert table.get_int('id') == 42
    assert table.get_string('user_name') == 'Alice'
    assert table.get_float64('score') == 3.5
    assert table.get_float32('score') == np.float32(3.5)
    assert table.get_time('created') == datetime.datetime(2021, 3, 4, 5, 6, 7)
    assert table.get_string('note') == ''

    assert table.next()
    assert table.get_int64('id') == 7
    assert table.get_string('user_name') == 'Bob'
    assert table.get_time('created') == datetime.datetime(2020, 1, 2, 3, 4, 5)
    assert table.get_string('note') == 'hi'


def test_null_cells_yield_zero_values(make_stream):
    columns = [('i', 'INT'), ('f', 'FLOAT'), ('s', 'VARCHAR'), ('t', 'DATE')]
    table = load(make_stream(columns, [(None, None, None, None)]))
    assert table.next()
    assert table.get_int('i') == 0
    assert table.get_int64('i') == 0
    assert table.get_float32('f') == 0
    assert table.get_float64('f') == 0.0
    assert table.get_string('s') == ''
    assert table.get_time('t') == ZERO_TIME


def test_unknown_column(mixed_stream):
    table = load(mixed_stream)
    table.next()
    with pytest.raises(UnknownColumnError) as exc:
        table.get_int('missing')
    assert 'missing' in str(exc.value)
    with pytest.raises(UnknownColumnError):
        table.get('missing')


def test_unsupported_conversion(mixed_stream):
    table = load(mixed_stream)
    table.next()
    with pytest.raises(UnsupportedConversionError) as exc:
        table.get_string('score')
    assert 'DOUBLE' in str(exc.value)
    assert 'score' in str(exc.value)
    with pytest.raises(UnsupportedConversionError):
        table.get_int('user_name')


def test_no_current_row(mixed_stream):
    table = load(mixed_stream)
    with pytest.raises(NoCurrentRowError):
        table.get_int('id')
    while table.next():
        pass
    with pytest.raises(NoCurrentRowError):
        table.get('id')


def test_parse_error_names_column(make_stream):
    table = load(make_stream([('n', 'BIGINT')], [(b'4x2',)]))
    table.next()
    with pytest.raises(ParseError) as exc:
        table.get_int64('n')
    assert exc.value.column == 'n'
    assert 'int64' in str(exc.value)


def test_year_and_time_dual_accessors(make_stream):
    table = load(make_stream([('y', 'YEAR'), ('t', 'TIME')], [(b'2021', b'08:15:00')]))
    table.next()
    assert table.get_int('y') == 2021
    assert table.get_time('y') == datetime.datetime(2021, 1, 1)
    assert table.get_string('t') == '08:15:00'
    assert table.get_time('t') == datetime.datetime(1, 1, 1, 8, 15)
    # generic get takes the first accepting category
    assert table.get('y') == 2021
    assert table.get('t') == '08:15:00'


def test_get_unclassified_returns_raw(mixed_stream):
    table = load(mixed_stream)
    table.next()
    assert table.get('blob') == b'\x00\x01'
    table.next()
    assert table.get('blob') is None


def test_duplicate_column_last_wins(make_stream):
    table = load(make_stream([('a', 'INT'), ('a', 'VARCHAR')], [(1, b'x')]))
    table.next()
    assert table.get('a') == 'x'
    assert table.name_at(0) == table.name_at(1) == 'a'


def test_to_map_matches_getters(make_stream):
    columns = [('id', 'INT'), ('name', 'VARCHAR'), ('gone', 'VARCHAR'), ('ts', 'TIMESTAMP')]
    ts = datetime.datetime(2022, 2, 2, 2, 2, 2)
    table = load(make_stream(columns, [(b'9', b'Zed', None, ts)]))
    table.next()
    result = table.to_map()
    assert result == {'id': 9, 'name': 'Zed', 'gone': '', 'ts': ts}
    for name, value in result.items():
        assert table.get(name) == value
    assert result['id'] == table.get_int64('id')
    assert result['name'] == table.get_string('name')
    assert result['ts'] == table.get_time('ts')


def test_to_map_partial_on_error(make_stream):
    table = load(make_stream([('a', 'INT'), ('b', 'INT'), ('c', 'INT')], [(1, b'bad', 3)]))
    table.next()
    with pytest.raises(ParseError) as exc:
        table.to_map()
    assert exc.value.partial == {'a': 1}


def test_iterrows(make_stream):
    table = load(make_stream([('id', 'INT')], [(1,), (2,)]))
    assert [t.get_int('id') for t in table.iterrows()] == [1, 2]
    assert not table.next()


def test_to_frame(mixed_stream):
    table = load(mixed_stream)
    table.seek(1)
    df = table.to_frame()
    assert isinstance(df, pd.DataFrame)
    assert df['id'].tolist() == [42, 7]
    assert df['user_name'].tolist() == ['Alice', 'Bob']
    assert df.attrs['column_types']['score'] == 'DOUBLE'
    assert table.cursor == 1
