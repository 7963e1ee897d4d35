"""
Orquestador Principal del Pipeline de Análisis de Demanda
Integra todos los componentes: conectores, limpieza, agregación y monitoreo

Etapas: carga de datos -> limpieza -> entrenamiento -> guardado de resultados
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from cyberdemand.config.settings import REPORTS_DIR, USAGE_COLUMN_MAPPING
from cyberdemand.models.records import UsageRecord, TrainingResult
from cyberdemand.pipeline.cleaning import UsageDataCleaner, DataQualityReport
from cyberdemand.pipeline.connectors import (
    DataConnector, DataConnectorFactory, pad_with_samples
)
from cyberdemand.pipeline.monitoring import (
    PipelineExecutionTracker, DataQualityMonitor, AlertType
)
from cyberdemand.prediction.aggregator import DemandAggregator
from cyberdemand.prediction.weekly_profile import WeeklyDemandProfile, weekly_stats
from cyberdemand.storage.repository import Repository

PIPELINE_VERSION = '1.0.0'

Source = Union[str, Path, Repository, Sequence[UsageRecord]]


class DemandAnalysisOrchestrator:
    """
    Orquestador principal del análisis de demanda
    Ejecuta todo el flujo de forma automática: lectura -> limpieza -> entrenamiento
    """

    def __init__(self,
                 source: Source,
                 output_dir: Optional[Path] = None,
                 pad_samples: bool = False,
                 seed: Optional[int] = None,
                 pc_count: Optional[int] = None,
                 log_to_file: Optional[bool] = None,
                 logs_dir: Optional[Path] = None):
        """
        Args:
            source: Ruta a CSV/JSON, repositorio de sesiones o lista de registros
            output_dir: Directorio de salida para resultados
            pad_samples: Si True, completa con sesiones de ejemplo cuando hay pocas
            seed: Semilla para las sesiones de ejemplo
            pc_count: Número de PCs para el perfil semanal
            log_to_file: Si True, escribe el log del pipeline a archivo
            logs_dir: Directorio de logs y reportes de ejecución
        """
        self.source = source
        self.output_dir = Path(output_dir or REPORTS_DIR)
        self.pad_samples = pad_samples
        self.seed = seed
        self.pc_count = pc_count

        # Tracker de ejecución
        self.tracker = PipelineExecutionTracker(
            "demand_analysis", log_to_file=log_to_file, logs_dir=logs_dir
        )
        self.quality_monitor = DataQualityMonitor(self.tracker.logger)

        self.connector: Optional[DataConnector] = None

        # Datos procesados
        self.raw_records: List[UsageRecord] = []
        self.clean_records: List[UsageRecord] = []
        self.result: Optional[TrainingResult] = None
        self.weekly_profile: Optional[WeeklyDemandProfile] = None

        # Reportes
        self.quality_report: Optional[DataQualityReport] = None
        self.output_paths: Dict[str, str] = {}

    def run(self, save_outputs: bool = True) -> Tuple[TrainingResult, Dict]:
        """
        Ejecuta el pipeline completo de forma automática

        Args:
            save_outputs: Si True, guarda resultados en output_dir

        Returns:
            Tuple con (TrainingResult, reporte de ejecución)
        """
        self.tracker.start_pipeline()

        try:
            # ETAPA 1: Carga de datos
            self._run_data_loading()

            # ETAPA 2: Limpieza de datos
            self._run_data_cleaning()

            # ETAPA 3: Entrenamiento (agregación horaria y perfil semanal)
            self._run_training()

            # ETAPA 4: Guardar resultados
            if save_outputs:
                self._save_outputs()

            self.tracker.complete_pipeline(success=True)

            report = self._generate_final_report(save_report=save_outputs)

            self.tracker.logger.logger.info(
                f"✓ Pipeline completado: {self.result.records_used} registros válidos, "
                f"horas pico: {self.result.peak_hours}"
            )

            return self.result, report

        except Exception as e:
            self.tracker.logger.log_alert(
                AlertType.PROCESSING_ERROR,
                f"Pipeline failed with error: {str(e)}",
                'HIGH'
            )
            self.tracker.complete_pipeline(success=False)
            raise

    def _create_connector(self) -> Optional[DataConnector]:
        """Selecciona el conector según el tipo de fuente"""
        if isinstance(self.source, (str, Path)):
            return DataConnectorFactory.for_path(self.source)
        if isinstance(self.source, Repository):
            return DataConnectorFactory.create_connector('repository', {'repository': self.source})
        return None

    def _run_data_loading(self):
        """Etapa 1: Carga de datos"""
        self.tracker.start_stage("data_loading")

        try:
            self.connector = self._create_connector()
            if self.connector is not None:
                records = self.connector.read_records()
                rejected = self.connector.rejected_rows
            else:
                records = list(self.source)
                rejected = 0

            if self.pad_samples:
                records = pad_with_samples(records, seed=self.seed)

            self.raw_records = records

            metadata = {
                'records_loaded': len(self.raw_records),
                'rows_rejected_at_parse': rejected,
                'sample_padding': self.pad_samples
            }
            self.tracker.complete_stage("data_loading", success=True, metadata=metadata)

        except Exception as e:
            self.tracker.complete_stage("data_loading", success=False, error=str(e))
            raise

    def _run_data_cleaning(self):
        """Etapa 2: Limpieza de datos"""
        self.tracker.start_stage("data_cleaning")

        try:
            cleaner = UsageDataCleaner()
            self.clean_records, self.quality_report = cleaner.clean(self.raw_records)

            self.tracker.logger.log_data_quality_report(self.quality_report)
            self.quality_monitor.check_invalid_ratio(len(self.raw_records), len(self.clean_records))
            outliers = self.quality_monitor.check_outliers(
                [r.duration_minutes for r in self.clean_records], 'duration'
            )

            metadata = {
                'records_after_cleaning': len(self.clean_records),
                'records_removed': len(self.raw_records) - len(self.clean_records),
                'quality_passed': self.quality_report.passed,
                'outlier_count': outliers['outlier_count']
            }
            self.tracker.complete_stage("data_cleaning", success=True, metadata=metadata)

        except Exception as e:
            self.tracker.complete_stage("data_cleaning", success=False, error=str(e))
            raise

    def _run_training(self):
        """Etapa 3: Agregación horaria, horas pico y perfil semanal"""
        self.tracker.start_stage("training")

        try:
            aggregator = DemandAggregator()
            self.result = aggregator.fit(self.clean_records)

            self.weekly_profile = WeeklyDemandProfile(pc_count=self.pc_count).fit(self.clean_records)

            metadata = {
                'records_used': self.result.records_used,
                'peak_hours': self.result.peak_hours,
                'average_duration_overall': self.result.average_duration_overall,
                'accuracy_score': self.result.accuracy_score
            }
            self.tracker.complete_stage("training", success=True, metadata=metadata)

        except Exception as e:
            self.tracker.complete_stage("training", success=False, error=str(e))
            raise

    def _save_outputs(self):
        """Etapa 4: Guardar resultados"""
        self.tracker.start_stage("saving_outputs")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)

            # Resultado del análisis (nombre fijo, sobrescribe)
            result_path = self.output_dir / "training_result_latest.json"
            with open(result_path, 'w', encoding='utf-8') as f:
                json.dump(self.result.model_dump(mode='json'), f, indent=2, ensure_ascii=False)

            # Registros limpios con los nombres de columna de entrada
            clean_path = self.output_dir / "clean_records_latest.csv"
            records_to_frame(self.clean_records).to_csv(clean_path, index=False)

            self.output_paths = {
                'training_result_path': str(result_path),
                'clean_records_path': str(clean_path)
            }
            self.tracker.complete_stage("saving_outputs", success=True, metadata=self.output_paths)

        except Exception as e:
            self.tracker.complete_stage("saving_outputs", success=False, error=str(e))
            raise

    def _generate_final_report(self, save_report: bool = True) -> Dict:
        """Genera el reporte final de ejecución"""
        execution_report = self.tracker.get_execution_report()
        weekly_entries = self.weekly_profile.entries()

        report = {
            'pipeline_version': PIPELINE_VERSION,
            'execution_timestamp': datetime.now().isoformat(),
            'execution_summary': {
                'status': 'SUCCESS',
                'start_time': execution_report['start_time'],
                'end_time': execution_report['end_time'],
                'total_duration': execution_report['total_duration']
            },
            'data_summary': {
                'input_records': len(self.raw_records),
                'cleaned_records': len(self.clean_records),
                'removed_records': len(self.raw_records) - len(self.clean_records)
            },
            'quality_report': self.quality_report.to_dict(),
            'result_summary': {
                'peak_hours': self.result.peak_hours,
                'average_duration_overall': self.result.average_duration_overall,
                'accuracy_score': self.result.accuracy_score,
                'metrics': self.result.metrics
            },
            'weekly_stats': weekly_stats(weekly_entries),
            'outputs': self.output_paths,
            'stages': execution_report['stages']
        }

        if save_report:
            self.tracker.save_report(keep_history=False)

        return report


def records_to_frame(records: Sequence[UsageRecord]) -> pd.DataFrame:
    """DataFrame con las columnas externas pcId,userId,duration,hour,day,timestamp"""
    reverse_mapping = {v: k for k, v in USAGE_COLUMN_MAPPING.items()}
    rows = [r.model_dump(mode='json') for r in records]
    df = pd.DataFrame(rows, columns=list(USAGE_COLUMN_MAPPING.values()))
    return df.rename(columns=reverse_mapping)


# ============== FUNCIÓN DE UTILIDAD PRINCIPAL ==============

def run_demand_analysis(source: Source,
                        output_dir: Optional[Path] = None,
                        pad_samples: bool = False,
                        seed: Optional[int] = None,
                        pc_count: Optional[int] = None,
                        save_outputs: bool = True,
                        log_to_file: Optional[bool] = None,
                        logs_dir: Optional[Path] = None) -> Tuple[TrainingResult, Dict]:
    """
    Función principal para ejecutar el análisis de demanda completo

    Args:
        source: Ruta a CSV/JSON, repositorio de sesiones o lista de UsageRecord
        output_dir: Directorio de salida (opcional)
        pad_samples: Completar con sesiones de ejemplo si hay pocas
        seed: Semilla de las sesiones de ejemplo
        pc_count: Número de PCs para el perfil semanal (por defecto TOTAL_PCS)
        save_outputs: Guardar resultados y reporte de ejecución
        log_to_file: Escribir log del pipeline a archivo
        logs_dir: Directorio de logs y reporte de ejecución

    Returns:
        Tuple con (TrainingResult, reporte de ejecución)

    Example:
        >>> result, report = run_demand_analysis('data/raw/sesiones.csv')
        >>> result.peak_hours
        [18, 19, 20]
    """
    orchestrator = DemandAnalysisOrchestrator(
        source=source,
        output_dir=output_dir,
        pad_samples=pad_samples,
        seed=seed,
        pc_count=pc_count,
        log_to_file=log_to_file,
        logs_dir=logs_dir
    )

    return orchestrator.run(save_outputs=save_outputs)
