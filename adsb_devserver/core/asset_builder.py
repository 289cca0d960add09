# core/asset_builder.py
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from adsb_devserver.utils.process_manager import terminate_process_tree

logger = logging.getLogger(__name__)
compiler_logger = logging.getLogger('compiler')

# Код выхода, если компилятор не найден (как в shell)
COMMAND_NOT_FOUND = 127

OUTPUT_CHUNK_SIZE = 64 * 1024
MAX_LINE_LENGTH = 1024 * 1024


@dataclass(frozen=True)
class BuildResult:
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class AssetBuilder:
    """
    Однократная сборка фронтенда перед запуском сервера.

    Запускает внешний компилятор (по умолчанию elm-make) на исходном файле;
    компилятор сам пишет (перезаписывает) выходной файл. Результат сборки -
    код выхода процесса, он приходит ровно один раз.
    """

    def __init__(self, compiler: Union[str, Sequence[str]], source, output,
                 yes: bool = True, cwd: Optional[Path] = None):
        self.compiler = [compiler] if isinstance(compiler, str) else list(compiler)
        self.source = str(source)
        self.output = str(output)
        self.yes = yes
        self.cwd = cwd
        self.process = None

    @classmethod
    def from_config(cls, config, cwd: Optional[Path] = None) -> 'AssetBuilder':
        build_config = config.get_build_config()
        return cls(
            compiler=build_config['compiler'],
            source=build_config['source'],
            output=build_config['output'],
            yes=build_config.get('yes', True),
            cwd=cwd,
        )

    def command(self) -> List[str]:
        cmd = [*self.compiler, self.source]
        if self.yes:
            cmd.append('--yes')
        cmd.extend(['--output', self.output])
        return cmd

    async def build(self) -> BuildResult:
        cmd = self.command()
        logger.info(f"🔨 Compiling {self.source} -> {self.output}")
        logger.debug(f"   Command: {' '.join(cmd)}")

        try:
            self.process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.error(f"❌ Не удалось запустить компилятор {self.compiler[0]}: {e}")
            return BuildResult(COMMAND_NOT_FOUND)

        try:
            await self._relay_output()
        except asyncio.CancelledError:
            logger.warning(f"⚠️ Build cancelled, stopping compiler (PID: {self.process.pid})")
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, terminate_process_tree, self.process.pid)
            raise
        finally:
            # Процесс дожидаемся всегда, даже если пересылка вывода упала
            exit_code = await self.process.wait()

        if exit_code == 0:
            logger.info(f"✅ Build finished: {self.output}")
        else:
            logger.debug(f"Compiler exited with code {exit_code}")
        return BuildResult(exit_code)

    async def _relay_output(self):
        """Пересылает вывод компилятора в лог построчно.

        Читает кусками: строки длиннее лимита StreamReader допустимы.
        """
        pending = b''
        while True:
            chunk = await self.process.stdout.read(OUTPUT_CHUNK_SIZE)
            if not chunk:
                break
            pending += chunk
            *lines, pending = pending.split(b'\n')
            for line in lines:
                self._log_line(line)
            if len(pending) > MAX_LINE_LENGTH:
                self._log_line(pending)
                pending = b''
        self._log_line(pending)

    def _log_line(self, line: bytes):
        text = line.decode('utf-8', errors='replace').rstrip()
        if text:
            compiler_logger.info(text)
