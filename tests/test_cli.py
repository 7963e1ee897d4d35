"""
Tests de la línea de comandos cyberdemand-analyze
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cyberdemand import cli
from cyberdemand.pipeline import monitoring


@pytest.fixture(autouse=True)
def no_log_files(monkeypatch, tmp_path):
    monkeypatch.setattr(monitoring, 'LOG_TO_FILE', False)
    monkeypatch.setattr(monitoring, 'LOGS_DIR', tmp_path / 'logs')


class TestCLI:

    def test_sample_run(self, capsys):
        exit_code = cli.main(['--sample', '60', '--seed', '5', '--no-save', '--weekly'])
        out = capsys.readouterr().out

        assert exit_code == 0
        assert 'Horas Pico' in out
        assert 'PERFIL SEMANAL' in out
        assert 'Lunes' in out

    def test_input_file(self, tmp_path, capsys):
        csv_path = tmp_path / 'sesiones.csv'
        csv_path.write_text(
            "pcId,userId,duration,hour,day,timestamp\n"
            "PC-1,user-1,200,21,2024-03-18,2024-03-18T21:00:00\n",
            encoding='utf-8'
        )

        exit_code = cli.main(['--input', str(csv_path), '--output-dir', str(tmp_path / 'out')])
        out = capsys.readouterr().out

        assert exit_code == 0
        assert '21:00' in out
        assert 'Considera aumentar personal o recursos durante estas horas' in out
        assert (tmp_path / 'out' / 'training_result_latest.json').exists()

    def test_missing_input(self, tmp_path):
        assert cli.main(['--input', str(tmp_path / 'no_existe.csv')]) == 1
