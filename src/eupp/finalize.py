"""Post-processing of assembled GRIB artifacts into other containers."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from eupp.errors import ConfigurationError, ConversionError
from eupp.selection import Selection
from eupp.storage import staged_path

LOGGER = logging.getLogger("eupp.finalize")

OUTPUT_FORMATS = ("grib", "nc")
GRIB_SET = "grib_set"
GRIB_TO_NETCDF = "grib_to_netcdf"
NETCDF_KINDS = range(1, 5)


class FormatFinalizer:
    """Validate container requests and run the ecCodes NetCDF conversion."""

    def __init__(self, *, netcdf_kind: int = 3) -> None:
        self.netcdf_kind = netcdf_kind

    def validate(self, selection: Selection, output_format: str) -> None:
        """
        Reject container requests the selection cannot satisfy.

        Runs before any network access.
        """

        if output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format {output_format!r}; expected one of {OUTPUT_FORMATS}"
            )
        if output_format == "grib":
            if selection.area is not None:
                raise ConfigurationError("Areal subsets are only allowed with the 'nc' output format.")
            return
        # NetCDF cannot hold overlapping initialization + step axes.
        if len(selection.dates) > 1:
            raise ConfigurationError("Downloading multiple dates in NetCDF format is not allowed.")
        kind = self.netcdf_kind
        if isinstance(kind, bool) or not isinstance(kind, int) or kind not in NETCDF_KINDS:
            raise ConfigurationError(f"netcdf_kind must be an integer between 1 and 4, got {kind!r}")
        self.executables()

    def executables(self) -> tuple[str, str]:
        """Return the resolved ``grib_set`` and ``grib_to_netcdf`` paths."""

        grib_set = shutil.which(GRIB_SET)
        grib_to_netcdf = shutil.which(GRIB_TO_NETCDF)
        if grib_set is None or grib_to_netcdf is None:
            raise ConversionError(
                "The 'nc' output format requires the ecCodes binaries "
                f"'{GRIB_SET}' and '{GRIB_TO_NETCDF}' to be installed."
            )
        return grib_set, grib_to_netcdf

    def finalize(self, grib_path: Path, output_path: Path | str, selection: Selection) -> Path:
        """
        Convert ``grib_path`` to NetCDF at ``output_path`` and delete ``grib_path``.
        """

        grib_set, grib_to_netcdf = self.executables()
        output = Path(output_path)
        if selection.is_ensemble:
            self._relabel_control_run(grib_set, grib_path)
        LOGGER.info("Converting grib file to netcdf")
        with staged_path(output, suffix=".nc.part") as tmp:
            _run([grib_to_netcdf, str(grib_path), "-k", str(self.netcdf_kind), "-o", str(tmp)])
        grib_path.unlink(missing_ok=True)
        LOGGER.info("Wrote %s", output)
        return output

    def _relabel_control_run(self, grib_set: str, grib_path: Path) -> None:
        """
        Make the control run member 0 of the perturbed type.

        ``grib_to_netcdf`` drops messages of type ``cf`` when ``pf`` messages
        are present, so the control run is rewritten in place.
        """

        scratch = grib_path.with_name(f"{grib_path.stem}.relabel{grib_path.suffix}")
        try:
            _run([grib_set, "-s", "number=0", "-w", "type=cf", str(grib_path), str(scratch)])
            _run([grib_set, "-s", "type=pf", "-w", "type=cf", str(scratch), str(grib_path)])
        finally:
            scratch.unlink(missing_ok=True)


def _run(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    LOGGER.debug("Running %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise ConversionError(
            f"{Path(cmd[0]).name} failed with return code {result.returncode}: {result.stderr[-2000:]}",
            command=cmd,
            returncode=result.returncode,
        )
    return result
