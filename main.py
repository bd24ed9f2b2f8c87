from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from reportx.charts import line_chart_data_uri
from reportx.config import Settings, get_settings
from reportx.errors import ReportRenderError
from reportx.layout.images import load_image_base64, wrap_chart_as_html, wrap_logo_as_html
from reportx.renderers.json_renderer import JsonRenderer
from reportx.renderers.pdf_renderer import PdfRenderer
from reportx.renderers.templates import load_template
from reportx.storage import read_json
from reportx.types import Alignment, Chart, Footer, Header, OutputFormat, Report


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


def _default_output(fmt: OutputFormat) -> Path:
    return Path(f'output.{fmt.value}')


def _optional_path(value: str | None) -> Path | None:
    if not value:
        return None
    return Path(value).expanduser().resolve()


def _load_input(path_arg: str) -> dict | None:
    input_path = Path(path_arg).expanduser().resolve()
    if not input_path.is_file():
        _print_json({'status': 'error', 'message': f'Input JSON not found: {input_path}'})
        return None
    try:
        report = read_json(input_path)
    except json.JSONDecodeError as exc:
        _print_json({'status': 'error', 'message': f'Failed to parse input JSON: {exc}'})
        return None
    if not isinstance(report, dict):
        _print_json({'status': 'error', 'message': 'Input JSON must be an object'})
        return None
    return report


def cmd_pdf(args: argparse.Namespace) -> int:
    settings = get_settings()
    report = _load_input(args.input)
    if report is None:
        return 2

    template_path = _optional_path(args.template)
    if template_path is not None and not template_path.is_file():
        _print_json({'status': 'error', 'message': f'Template not found: {template_path}'})
        return 2

    output_path = Path(args.output) if args.output else _default_output(OutputFormat.pdf)
    try:
        config = settings.render_config(
            show_page_number=args.show_page_number,
            background_image_path=_optional_path(args.base_image),
            header_image_path=_optional_path(args.header_image),
            footer_image_path=_optional_path(args.footer_image),
            include_timestamp=args.with_timestamp,
            timestamp_format=args.time_format,
        )
        renderer = PdfRenderer(report, load_template(template_path), config)
        pdf_bytes = renderer.render(output_path)
    except (OSError, ValueError, ReportRenderError) as exc:
        _print_json({'status': 'error', 'message': f'Failed to render PDF: {exc}'})
        return 2

    _print_json({'status': 'ok', 'format': 'pdf', 'output': str(output_path), 'bytes': len(pdf_bytes)})
    return 0


def cmd_json(args: argparse.Namespace) -> int:
    settings = get_settings()
    report = _load_input(args.input)
    if report is None:
        return 2

    output_path = Path(args.output) if args.output else _default_output(OutputFormat.json)
    include_timestamp = settings.include_timestamp if args.with_timestamp is None else args.with_timestamp
    try:
        data = JsonRenderer(
            report,
            include_timestamp=include_timestamp,
            timestamp_format=args.time_format or settings.timestamp_format,
        ).render(output_path)
    except (OSError, TypeError, ValueError) as exc:
        _print_json({'status': 'error', 'message': f'Failed to render JSON: {exc}'})
        return 2

    _print_json({'status': 'ok', 'format': 'json', 'output': str(output_path), 'bytes': len(data)})
    return 0


def build_demo_report(logo_path: Path | None = None) -> Report:
    logo = ''
    if logo_path is not None and logo_path.is_file():
        logo = str(wrap_logo_as_html(load_image_base64(logo_path), Alignment.center))

    charts = [
        Chart(
            title='Usage Overview',
            description='Chart showing daily user activity.',
            tag=str(wrap_chart_as_html(line_chart_data_uri(), Alignment.center)),
            align=Alignment.center,
            order=0,
        ),
        Chart(
            title='Error Trends',
            description='Error spikes across regions.',
            tag=str(wrap_chart_as_html(line_chart_data_uri(), Alignment.right)),
            align=Alignment.right,
            order=1,
        ),
        Chart(
            title='Left Chart',
            description='Error spikes across regions.',
            tag=str(wrap_chart_as_html(line_chart_data_uri(), Alignment.left)),
            align=Alignment.left,
            order=2,
        ),
    ]
    return Report(
        header=Header(
            title='Smart Report',
            subtitle='Auto-generated Example',
            explanation='This report is generated using simplified HTML.',
            logo=logo,
            logo_align=Alignment.center,
        ),
        footer=Footer(note='Generated with reportx'),
        data={
            'Customer': 'Jane Smith',
            'Email': 'jane@example.com',
            'Project': 'AI Dashboard',
            'Status': 'Complete',
        },
        charts=charts,
    )


def cmd_demo(args: argparse.Namespace) -> int:
    settings = get_settings()
    output_dir = Path(args.output_dir).expanduser().resolve()
    report = build_demo_report(_optional_path(args.logo))

    pdf_path = output_dir / 'demo.pdf'
    json_path = output_dir / 'demo.json'
    try:
        config = settings.render_config(include_timestamp=args.with_timestamp)
        PdfRenderer(report, load_template(), config).render(pdf_path)
        JsonRenderer(
            report,
            include_timestamp=config.include_timestamp,
            timestamp_format=config.timestamp_format,
        ).render(json_path)
    except (OSError, ValueError, ReportRenderError) as exc:
        _print_json({'status': 'error', 'message': f'Failed to render demo: {exc}'})
        return 2

    _print_json({'status': 'ok', 'pdf': str(pdf_path), 'json': str(json_path)})
    return 0


def _add_common_render_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--input', required=True, help='Path to JSON input file')
    parser.add_argument('--output', required=False, help='Output file path')
    parser.add_argument(
        '--with-timestamp',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Include a generation timestamp',
    )
    parser.add_argument(
        '--time-format',
        required=False,
        help='Timestamp format (strftime pattern or Go layout such as 2006-01-02 15:04:05)',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='reportx: render report data to paginated PDF or JSON')
    sub = parser.add_subparsers(dest='command', required=True)

    pdf = sub.add_parser('pdf', help='Render a report through an HTML template into a PDF')
    _add_common_render_args(pdf)
    pdf.add_argument('--template', required=False, help='HTML template path (defaults to the bundled template)')
    pdf.add_argument('--header-image', required=False, help='Header image path')
    pdf.add_argument('--footer-image', required=False, help='Footer image path')
    pdf.add_argument('--base-image', required=False, help='Background image path')
    pdf.add_argument(
        '--show-page-number',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Show page numbers',
    )
    pdf.set_defaults(func=cmd_pdf)

    json_cmd = sub.add_parser('json', help='Render a report as indented JSON')
    _add_common_render_args(json_cmd)
    json_cmd.set_defaults(func=cmd_json)

    demo = sub.add_parser('demo', help='Render the bundled demo report to PDF and JSON')
    demo.add_argument('--output-dir', default='.', help='Directory for demo.pdf and demo.json')
    demo.add_argument('--logo', required=False, help='Optional logo image path')
    demo.add_argument(
        '--with-timestamp',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Include a generation timestamp',
    )
    demo.set_defaults(func=cmd_demo)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(get_settings())
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
