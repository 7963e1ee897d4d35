"""
Script para ejecutar el análisis de demanda desde la línea de comandos
Uso: cyberdemand-analyze --input data/raw/sesiones.csv
     cyberdemand-analyze --sample 100 --seed 42 --weekly
"""
import argparse
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from cyberdemand.models.records import TrainingResult
from cyberdemand.pipeline.connectors import generate_sample_records
from cyberdemand.pipeline.orchestrator import DemandAnalysisOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Análisis de demanda por hora del cibercafé')
    parser.add_argument('--input', type=str, default=None,
                        help='Archivo de sesiones (.csv o .json)')
    parser.add_argument('--sample', type=int, default=None,
                        help='Analizar N sesiones de ejemplo en lugar de un archivo')
    parser.add_argument('--seed', type=int, default=None,
                        help='Semilla de las sesiones de ejemplo')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Directorio de salida para resultados')
    parser.add_argument('--no-save', action='store_true',
                        help='No guardar resultados ni reporte de ejecución')
    parser.add_argument('--weekly', action='store_true',
                        help='Mostrar también el perfil semanal de ocupación')
    return parser


def print_hourly_table(result: TrainingResult):
    print("\n📊 DURACIÓN PROMEDIO POR HORA:")
    print(f"  {'Hora':<8}{'Promedio (min)':>16}")
    for prediction in result.predictions:
        marker = "  ⚠ pico" if prediction.hour in result.peak_hours else ""
        print(f"  {prediction.hour:02d}:00   {prediction.average_duration_minutes:>14}{marker}")


def print_peak_hours(result: TrainingResult):
    print("\n⏰ Horas Pico:")
    if not result.peak_hours:
        print("  No se detectaron horas pico")
        return
    print("  " + ", ".join(f"{hour:02d}:00" for hour in result.peak_hours))
    print("  Considera aumentar personal o recursos durante estas horas")


def print_weekly_profile(orchestrator: DemandAnalysisOrchestrator, stats: dict):
    print("\n📅 PERFIL SEMANAL DE OCUPACIÓN (%):")
    entries = orchestrator.weekly_profile.entries()
    hours = orchestrator.weekly_profile.opening_hours
    print("  " + f"{'Día':<11}" + "".join(f"{h:>4}" for h in hours))

    for start in range(0, len(entries), len(hours)):
        row = entries[start:start + len(hours)]
        print("  " + f"{row[0].day:<11}" + "".join(f"{e.predicted_usage:>4}" for e in row))

    print(f"\n  Pico semanal: {stats['weekly_peak']}%")
    print(f"  Promedio semanal: {stats['avg_weekly']}%")
    print(f"  Horas de baja demanda por día: {stats['low_demand_hours']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    print("="*70)
    print("ANÁLISIS DE DEMANDA POR HORA")
    print("Sistema de Análisis de Demanda del Cibercafé")
    print("="*70 + "\n")

    if args.input:
        source = Path(args.input)
        if not source.exists():
            print(f"⚠️  ERROR: No se encuentra el archivo {source}")
            return 1
    else:
        n = args.sample if args.sample is not None else 100
        if n < 0:
            print(f"⚠️  ERROR: --sample debe ser positivo: {n}")
            return 1
        source = generate_sample_records(n, seed=args.seed)
        print(f"Usando {n} sesiones de ejemplo")

    try:
        orchestrator = DemandAnalysisOrchestrator(
            source=source,
            output_dir=Path(args.output_dir) if args.output_dir else None,
            seed=args.seed
        )
        result, report = orchestrator.run(save_outputs=not args.no_save)

        print("\n📊 RESULTADOS:")
        print(f"  - Registros de entrada: {report['data_summary']['input_records']}")
        print(f"  - Registros válidos: {result.records_used}")
        print(f"  - Duración promedio general: {result.average_duration_overall} min")
        print(f"  - Precisión del modelo: {result.accuracy_score * 100:.1f}%")

        print_hourly_table(result)
        print_peak_hours(result)

        if args.weekly:
            print_weekly_profile(orchestrator, report['weekly_stats'])

        if report['outputs']:
            print(f"\n✓ Resultados guardados en: {report['outputs']['training_result_path']}")
        print("\n✓ Análisis completado exitosamente")
        return 0

    except Exception as e:
        print(f"\n❌ Error en el análisis: {e}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
