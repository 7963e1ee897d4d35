"""
Tests para los repositorios de sesiones y PCs
"""

from datetime import datetime
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cyberdemand.models.records import SessionLog, SessionStatus, PC, PCStatus
from cyberdemand.storage.repository import (
    InMemoryRepository, JSONFileRepository, create_repository, end_session
)


@pytest.fixture(params=['memory', 'json'])
def session_repo(request, tmp_path):
    """Mismo contrato para ambos backends"""
    return create_repository('cybercafe_sessions', SessionLog,
                             backend=request.param, storage_dir=tmp_path)


def make_session(session_id='s1', duration=60):
    return SessionLog(
        id=session_id, pc_id='PC-1', user_id='user-1',
        start_time=datetime(2024, 3, 18, 10, 0), duration=duration
    )


class TestRepositoryContract:

    def test_insert_get_list(self, session_repo):
        session_repo.insert(make_session('s1'))
        session_repo.insert(make_session('s2', duration=90))

        assert session_repo.count() == 2
        assert [s.id for s in session_repo.list()] == ['s1', 's2']
        assert session_repo.get('s2').duration == 90

    def test_duplicate_insert(self, session_repo):
        session_repo.insert(make_session('s1'))
        with pytest.raises(ValueError):
            session_repo.insert(make_session('s1'))

    def test_unknown_id(self, session_repo):
        with pytest.raises(KeyError):
            session_repo.get('nope')
        with pytest.raises(KeyError):
            session_repo.update('nope', {'duration': 10})
        with pytest.raises(KeyError):
            session_repo.delete('nope')

    def test_update_keeps_id(self, session_repo):
        session_repo.insert(make_session('s1'))
        updated = session_repo.update('s1', {'duration': 120, 'id': 'otro'})

        assert updated.id == 's1'
        assert session_repo.get('s1').duration == 120

    def test_invalid_update(self, session_repo):
        session_repo.insert(make_session('s1'))
        with pytest.raises(ValueError):
            session_repo.update('s1', {'duration': 'mucho'})

    def test_delete(self, session_repo):
        session_repo.insert(make_session('s1'))
        session_repo.delete('s1')
        assert session_repo.count() == 0

    def test_end_session(self, session_repo):
        session_repo.insert(make_session('s1'))
        ended = end_session(session_repo, 's1')

        assert ended.status == SessionStatus.ENDED
        assert session_repo.get('s1').status == SessionStatus.ENDED


class TestJSONFileRepository:

    def test_persists_between_instances(self, tmp_path):
        repo = JSONFileRepository(PC, 'cybercafe_pcs', storage_dir=tmp_path)
        repo.insert(PC(id='pc-1', number=1, status=PCStatus.OCUPADA, location='Zona A'))

        reopened = JSONFileRepository(PC, 'cybercafe_pcs', storage_dir=tmp_path)

        assert (tmp_path / 'cybercafe_pcs.json').exists()
        assert reopened.get('pc-1').status == PCStatus.OCUPADA

    def test_missing_file_is_empty(self, tmp_path):
        repo = JSONFileRepository(PC, 'cybercafe_pcs', storage_dir=tmp_path / 'nuevo')
        assert repo.list() == []

    def test_corrupt_file(self, tmp_path):
        (tmp_path / 'cybercafe_pcs.json').write_text('{roto', encoding='utf-8')
        repo = JSONFileRepository(PC, 'cybercafe_pcs', storage_dir=tmp_path)

        with pytest.raises(ValueError):
            repo.list()


class TestCreateRepository:

    def test_backends(self, tmp_path):
        assert isinstance(create_repository('x', PC, backend='memory'), InMemoryRepository)
        assert isinstance(create_repository('x', PC, backend='json', storage_dir=tmp_path), JSONFileRepository)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_repository('x', PC, backend='redis')
