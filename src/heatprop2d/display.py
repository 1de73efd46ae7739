# ------------------------------------------------------------
# Live window (pygame)
# ------------------------------------------------------------
# The window loop owns the RGBA buffer and calls the simulation's
# frame callback once per drawn frame. Escape or closing the window
# stops the loop between frames.
# ------------------------------------------------------------

from __future__ import annotations

import logging

from heatprop2d.simulation import Simulation

logger = logging.getLogger(__name__)

BACKGROUND = (0, 0, 0)
TEXT_COLOR = (255, 255, 255)


def run_window(sim: Simulation, title: str = "Propagation de la chaleur 2D", fps_cap: int = 0) -> int:
    """
    Open a window of the grid size and animate the simulation until closed.

    fps_cap=0 runs as fast as the solver allows. Returns the number of
    frames drawn.
    """
    import pygame

    params = sim.params
    W, H = params.width, params.height

    pygame.init()
    try:
        screen = pygame.display.set_mode((W, H))
        pygame.display.set_caption(title)
        font = pygame.font.Font(None, 16)
        clock = pygame.time.Clock()

        buf = bytearray(params.frame_bytes)
        frames = 0
        running = True
        while running:
            for ev in pygame.event.get():
                if ev.type == pygame.QUIT:
                    running = False
                elif ev.type == pygame.KEYDOWN and ev.key == pygame.K_ESCAPE:
                    running = False
            if not running:
                break

            sim.produce_next_frame(buf)
            image = pygame.image.frombuffer(buf, (W, H), "RGBA")

            screen.fill(BACKGROUND)
            screen.blit(image, (0, 0))

            label = font.render(f"{clock.get_fps():.0f} fps", True, TEXT_COLOR)
            screen.blit(label, (W - 100, 30))

            pygame.display.flip()
            clock.tick(fps_cap)
            frames += 1

            if frames % 100 == 0:
                logger.debug("Frame %d  t=%.4f  %.1f fps", frames, sim.time, clock.get_fps())
    finally:
        pygame.quit()

    logger.info("Window closed after %d frames (t=%.4f).", frames, sim.time)
    return frames
