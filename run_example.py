from pathlib import Path
from PIL import Image
from logostamp.controllers.batch_controller import BatchController
from logostamp.imaging.magick import MagickRenderer
from logostamp.models.settings import RunSettings, SizingPolicy
from logostamp.models.enums import Placement, OutputFormat, BaseDimension
from logostamp.utils.logging_utils import build_logger

build_logger()

tmp = Path('example_run')
(tmp / 'in').mkdir(parents=True, exist_ok=True)
Image.new('RGB', (1920, 1080), (40, 90, 160)).save(tmp / 'in' / 'blue.png')
logo = tmp / 'logo.svg'
logo.write_text(
    '<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100">'
    '<rect width="200" height="100" rx="12" fill="#ffcc00"/></svg>'
)

settings = RunSettings(
    input_dir=tmp / 'in', logo_path=logo, output_dir=tmp / 'out',
    sizing=SizingPolicy(0.1, BaseDimension.WIDTH),
    placement=Placement.BOTTOM_RIGHT, output_format=OutputFormat.JPEG,
)

report = BatchController(settings, MagickRenderer.discover()).run()
print('Written:', [str(r.output_path) for r in report.succeeded])
