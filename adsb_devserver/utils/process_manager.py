# utils/process_manager.py
import psutil
import logging
from typing import List

logger = logging.getLogger(__name__)


def is_process_alive(process: psutil.Process) -> bool:
    """Зомби считается завершённым процессом"""
    try:
        return process.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


def _wait_gone(processes: List[psutil.Process], timeout: float) -> List[psutil.Process]:
    """Ждёт завершения процессов, возвращает оставшихся в живых"""
    _, alive = psutil.wait_procs(processes, timeout=timeout)
    # Осиротевший зомби ждёт init, для нас он уже завершён
    return [p for p in alive if is_process_alive(p)]


def terminate_process_tree(pid: int, timeout: float = 3.0) -> bool:
    """Завершает процесс и всех его потомков.

    Сначала terminate(), затем kill() для тех, кто не завершился за timeout.
    Уже завершённый процесс считается успехом. Блокирует до 2 * timeout,
    из корутин вызывать через run_in_executor.
    """
    try:
        parent = psutil.Process(pid)
        processes = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        logger.info(f"⚠️ Процесс PID: {pid} уже завершен")
        return True

    for process in processes:
        try:
            process.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.error(f"❌ Отказано в доступе к процессу PID: {process.pid}")
            return False

    alive = _wait_gone(processes, timeout)
    for process in alive:
        logger.warning(f"⚠️ PID: {process.pid} не завершился, kill()")
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.error(f"❌ Не удалось принудительно завершить PID: {process.pid}")
            return False

    if alive:
        still_alive = _wait_gone(alive, timeout)
        if still_alive:
            logger.error(f"❌ Процессы не завершились: {[p.pid for p in still_alive]}")
            return False

    logger.info(f"✅ Процесс PID: {pid} завершен ({len(processes)} процесс(ов) в дереве)")
    return True
