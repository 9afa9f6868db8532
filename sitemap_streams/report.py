# sitemap_streams/report.py

"""
Генерация JSON-отчёта о сборке sitemap.

Сериализация объекта BuildReport в файл.
"""
import json
from dataclasses import asdict
from pathlib import Path

from sitemap_streams.engine import BuildReport


def render_json(report: BuildReport, output_path: Path | str) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект BuildReport с данными сборки
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from sitemap_streams.report import render_json
    report_path = render_json(report, 'reports/sitemaps.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = asdict(report)
    data['sitemap_count'] = sum(1 for shard in report.shards if shard.indexed)

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output
