import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import gradio as gr
import plotly.graph_objects as go

from core.pipeline import export, run
from core.sources import DEFAULT_NAME_FIELD

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
logger = logging.getLogger("app")

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_OVERRIDES_PATH = BASE_DIR / "overrides.csv"


def _to_input_path(file_obj) -> Optional[str]:
    if file_obj is None:
        return None
    return file_obj.name if hasattr(file_obj, "name") else str(file_obj)


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def process(
    regions_file,
    px_file,
    name_field: str,
    layer: str,
    period: str,
    category: str,
    overrides_file,
    progress=gr.Progress(track_tqdm=False),
) -> Tuple[go.Figure, go.Figure, go.Figure, str, Dict[str, Any]]:
    regions_path = _to_input_path(regions_file)
    px_path = _to_input_path(px_file)
    if not regions_path or not px_path:
        raise gr.Error("Загрузите файл геометрии и файл PC-Axis (.px)")

    overrides_path = _to_input_path(overrides_file)
    if overrides_path is None and DEFAULT_OVERRIDES_PATH.exists():
        overrides_path = str(DEFAULT_OVERRIDES_PATH)

    progress(0, desc="Загрузка и сопоставление…")
    try:
        result = run(
            regions_path,
            px_path,
            name_field=_clean_text(name_field) or DEFAULT_NAME_FIELD,
            layer=_clean_text(layer),
            period=_clean_text(period),
            category=_clean_text(category),
            overrides_path=overrides_path,
        )
    except ValueError as e:
        # InvalidInput и ошибки колонок показываем пользователю как есть
        logger.error("run failed: %s", e)
        raise gr.Error(str(e))

    progress(0.9, desc="Выгрузка отчёта…")
    out_path = export(result)

    rec = result.reconciliation
    stats = {
        **result.stats.as_dict(),
        "period": result.period,
        "category": result.category,
        "unresolved_names": sorted(rec.unresolved),
        "fuzzy_matches": rec.fuzzy,
    }
    progress(1.0, desc="Готово")
    return (
        result.figures["map"],
        result.figures["bar_region"],
        result.figures["bar_category"],
        out_path,
        stats,
    )


# ---------------- UI ----------------
with gr.Blocks() as demo:
    gr.Markdown(
        "### Население провинций Испании: карта по данным INE\n"
        "1) Загрузите геометрию провинций (`.zip` с shapefile, `.gpkg` или `.geojson`)\n"
        "2) Загрузите таблицу INE в формате PC-Axis (`.px`)\n"
        "3) Укажите **поле с названием** провинции в геометрии\n"
        "4) Нажмите **Построить**\n"
        "5) Скачайте отчёт: `observed`, `canonical`, `method` (exact / fuzzy / unresolved), "
        "`suggestions` + `log` (JSON)"
    )

    regions_in = gr.File(label="Геометрия провинций", file_types=[".zip", ".shp", ".gpkg", ".geojson", ".json"])
    px_in = gr.File(label="Таблица INE (.px)", file_types=[".px"])

    gr.Markdown("#### Параметры источников")
    name_field_in = gr.Textbox(label="Поле с названием провинции", placeholder="например: NAME или NAME_2", value=DEFAULT_NAME_FIELD)
    layer_in = gr.Textbox(label="Слой (для многослойных файлов)", placeholder="пусто = первый слой", value="")
    period_in = gr.Textbox(label="Период", placeholder="пусто = последний доступный", value="")
    category_in = gr.Textbox(label="Категория", placeholder="пусто = Total / Ambos sexos", value="")

    with gr.Accordion("Расширенные настройки (варианты написания)", open=False):
        gr.Markdown(
            """
            Файл `overrides.csv` с колонками `observed,fragment`:
            - `observed` это название из INE (код провинции можно не указывать)
            - `fragment` ищется подстрокой в названии из геометрии
            - применяется только к именам, не найденным точным совпадением

            Если файл не загружен, используется `overrides.csv` из репозитория.
            Неоднозначные совпадения не выбираются, а попадают в отчёт как `unresolved`.
            """
        )
        overrides_in = gr.File(label="overrides.csv", file_types=[".csv"])

    btn = gr.Button("Построить", variant="primary")
    map_out = gr.Plot(label="Карта")
    bar_region_out = gr.Plot(label="По провинциям")
    bar_category_out = gr.Plot(label="По категориям")
    file_out = gr.File(label="Отчёт сопоставления (.xlsx)")
    stats = gr.JSON(label="Статистика выполнения")

    btn.click(
        process,
        inputs=[
            regions_in,
            px_in,
            name_field_in,
            layer_in,
            period_in,
            category_in,
            overrides_in,
        ],
        outputs=[map_out, bar_region_out, bar_category_out, file_out, stats],
    )

demo.queue()


if __name__ == "__main__":
    demo.launch()
