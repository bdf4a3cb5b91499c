import os

import pytest

from triocall.distributed import transaction
from triocall.distributed.transaction import (file_transaction, get_base_tmpdir,
                                              tx_tmpdir, _flatten_plus_safe,
                                              _move_file_with_sizecheck)

CWD = 'TEST_CWD'
CONFIG = {'a': 1}
TMPDIR = 'TEST_TMPDIR'


@pytest.fixture
def mock_io(mocker):
    mocker.patch('triocall.distributed.transaction.open')
    mocker.patch('triocall.distributed.transaction.os.path.isdir')
    mocker.patch('triocall.distributed.transaction.os.path.exists')
    mocker.patch('triocall.distributed.transaction.shutil')
    mocker.patch(
        'triocall.distributed.transaction.tempfile.mkdtemp',
        return_value=TMPDIR)
    mocker.patch('triocall.distributed.transaction.utils')
    mocker.patch(
        'triocall.distributed.transaction.os.getcwd',
        return_value=CWD
    )
    yield None


class TestTxTmpdir(object):

    def test_makes_unique_tmp_dir(self, mock_io):
        with tx_tmpdir(None):
            pass
        transaction.tempfile.mkdtemp.assert_called_once_with(
            dir=transaction.utils.get_abspath.return_value)

    def test_yields_tmp_dir(self, mock_io):
        with tx_tmpdir() as tmp_dir:
            assert tmp_dir == TMPDIR

    def test_rmtree_not_called_if_remove_is_false(self, mock_io):
        with tx_tmpdir(remove=False):
            pass
        assert not transaction.utils.remove_safe.called

    def test_rmtree_called_if_remove_is_true(self, mock_io):
        with tx_tmpdir(remove=True):
            pass
        transaction.utils.remove_safe.assert_called_once_with(TMPDIR)

    def test_create_tmpdir_in_a_specified_base_dir(self, mock_io):
        with tx_tmpdir(base_dir='somedir'):
            pass
        transaction.utils.get_abspath.assert_called_once_with('somedir/triotx')


class TestGetBaseTmpdir(object):
    def test_from_resources(self):
        config = {'resources': {'tmp': {'dir': 'TEST_TMP_DIR'}}}
        assert get_base_tmpdir(config, CWD) == 'TEST_TMP_DIR'

    def test_no_config(self):
        assert get_base_tmpdir(None, CWD) == '%s/triotx' % CWD


class TestFlattenPlusSafe(object):
    @pytest.mark.parametrize(('args', 'expected_safe'), [
        (('/path/to/somefile',), ['/path/to/somefile']),
        ((CONFIG, '/path/to/somefile'), ['/path/to/somefile']),
        ((CONFIG, ['/path/to/somefile']), ['/path/to/somefile']),
        ((None, '/path/to/somefile'), ['/path/to/somefile']),
        (
            (CONFIG, '/path/to/somefile', '/otherpath/to/otherfile'),
            ['/path/to/somefile', '/otherpath/to/otherfile'],
        )]
    )
    def test_returns_original_filenames(self, args, expected_safe, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with _flatten_plus_safe(args) as (result_tx, result_safe):
            assert result_safe == expected_safe
            assert [os.path.basename(x) for x in result_tx] == \
                [os.path.basename(x) for x in expected_safe]


class TestMoveWithSizeCheck(object):
    def test_moves_files(self, mock_io):
        _move_file_with_sizecheck('foo', 'bar')
        transaction.shutil.move.assert_called_once_with('foo', 'bar')

    def test_fails_if_sizes_arent_equal(self, mock_io):
        transaction.utils.get_size.side_effect = lambda x: x
        with pytest.raises(AssertionError):
            _move_file_with_sizecheck('foo', 'bar')
        assert not transaction.utils.remove_safe.called

    def test_creates_flag_file(self, mock_io):
        _move_file_with_sizecheck('foo', 'bar')
        transaction.open.assert_called_once_with('bar.triotmp', 'wb')
        transaction.utils.remove_safe.assert_called_once_with('bar.triotmp')


class TestFileTransaction(object):

    def test_output_appears_after_success(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        out_file = str(tmp_path / 'out' / 'calls.vcf.gz')
        with file_transaction({}, out_file) as tx_out_file:
            assert tx_out_file != out_file
            with open(tx_out_file, 'w') as out_handle:
                out_handle.write('data')
            with open(tx_out_file + '.tbi', 'w') as out_handle:
                out_handle.write('index')
            assert not os.path.exists(out_file)
        assert open(out_file).read() == 'data'
        assert os.path.exists(out_file + '.tbi')
        assert not transaction.is_incomplete(out_file)

    def test_failed_action_leaves_no_output(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        out_file = str(tmp_path / 'calls.bam')
        with pytest.raises(ValueError):
            with file_transaction({}, out_file) as tx_out_file:
                with open(tx_out_file, 'w') as out_handle:
                    out_handle.write('partial')
                raise ValueError('tool failed')
        assert not os.path.exists(out_file)

    def test_yields_tuple_of_paths_to_tmpfiles(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with file_transaction({}, '/some/path', '/some/otherpath') as tx_files:
            assert isinstance(tx_files, tuple)
            assert [os.path.basename(x) for x in tx_files] == ['path', 'otherpath']

    def test_interrupted_move_is_incomplete(self, tmp_path):
        out_file = str(tmp_path / 'calls.bam')
        open(out_file + '.triotmp', 'w').close()
        assert transaction.is_incomplete(out_file)
