"""Generated C sources for preview builds.

- ``lv_conf.h``: LVGL configuration (display geometry, heap size, SDL driver)
- ``lv_drv_conf.h``: lv_drivers configuration for LVGL 8.x
- ``main.c``: emscripten entry point that sets up SDL, registers an LVGL
  display and pointer device, then calls the user's
  ``lvgl_live_preview_init()``
"""

from pathlib import Path
from string import Template

from .driver_profile import DriverProfile

LV_CONF_TEMPLATE = Template("""\
/* Generated by lvpreview. Do not edit. */
#ifndef LV_CONF_H
#define LV_CONF_H

#include <stdint.h>

#define MY_DISP_HOR_RES $width
#define MY_DISP_VER_RES $height

#define LV_COLOR_DEPTH 32
#define LV_COLOR_16_SWAP 0

#define LV_MEM_CUSTOM 0
#define LV_USE_STDLIB_MALLOC LV_STDLIB_BUILTIN
#define LV_MEM_SIZE ($memory_kb * 1024U)

#define LV_DEF_REFR_PERIOD 16
#define LV_DISP_DEF_REFR_PERIOD 16
#define LV_INDEV_DEF_READ_PERIOD 30
#define LV_DPI_DEF 130

#define LV_TICK_CUSTOM 0
#define LV_USE_LOG 1
#define LV_LOG_LEVEL LV_LOG_LEVEL_WARN
#define LV_LOG_PRINTF 1
#define LV_USE_ASSERT_NULL 1
#define LV_USE_ASSERT_MALLOC 1

#define LV_FONT_MONTSERRAT_12 1
#define LV_FONT_MONTSERRAT_14 1
#define LV_FONT_MONTSERRAT_16 1
#define LV_FONT_MONTSERRAT_20 1
#define LV_FONT_MONTSERRAT_24 1
#define LV_FONT_DEFAULT &lv_font_montserrat_14

#define LV_USE_THEME_DEFAULT 1
#define LV_USE_FLEX 1
#define LV_USE_GRID 1

#define LV_USE_SDL $use_sdl
#define LV_SDL_INCLUDE_PATH <SDL2/SDL.h>

#endif /* LV_CONF_H */
""")

LV_DRV_CONF_TEMPLATE = Template("""\
/* Generated by lvpreview. Do not edit. */
#ifndef LV_DRV_CONF_H
#define LV_DRV_CONF_H

#include "lv_conf.h"

#ifndef USE_SDL
#define USE_SDL 1
#endif
#define SDL_HOR_RES $width
#define SDL_VER_RES $height
#define SDL_ZOOM 1
#define SDL_DOUBLE_BUFFERED 0
#define SDL_INCLUDE_PATH <SDL2/SDL.h>
#define SDL_DUAL_DISPLAY 0

#define USE_MONITOR 0
#define USE_MOUSE 0
#define USE_MOUSEWHEEL 0
#define USE_KEYBOARD 0

#endif /* LV_DRV_CONF_H */
""")

MAIN_SOURCE = """\
/* Generated by lvpreview. Do not edit. */
#include "lvgl.h"
#include <emscripten.h>
#include <SDL2/SDL.h>
#include <stdbool.h>
#include <stdio.h>
#include <stdlib.h>
#include <string.h>

#ifdef LVGL_LIVE_PREVIEW
extern void lvgl_live_preview_init(void);
#endif

#if defined(LVGL_VERSION_MAJOR) && LVGL_VERSION_MAJOR >= 9
    #define LVGL_V9_OR_LATER 1
#else
    #define LVGL_V9_OR_LATER 0
#endif

#define DISP_HOR_RES MY_DISP_HOR_RES
#define DISP_VER_RES MY_DISP_VER_RES

static SDL_Window *window = NULL;
static SDL_Renderer *renderer = NULL;
static SDL_Texture *texture = NULL;
static uint32_t *fb = NULL;

#if !LVGL_V9_OR_LATER
static lv_disp_drv_t disp_drv;
static lv_disp_draw_buf_t draw_buf;
static lv_indev_drv_t indev_drv;
#endif

static void present(void) {
    SDL_UpdateTexture(texture, NULL, fb, DISP_HOR_RES * sizeof(uint32_t));
    SDL_RenderClear(renderer);
    SDL_RenderCopy(renderer, texture, NULL, NULL);
    SDL_RenderPresent(renderer);
}

#if LVGL_V9_OR_LATER
static void disp_flush(lv_display_t *disp, const lv_area_t *area, uint8_t *px_map) {
    uint32_t *src = (uint32_t *)px_map;
    int32_t w = lv_area_get_width(area);
    int32_t h = lv_area_get_height(area);
    for (int32_t y = 0; y < h; y++) {
        memcpy(fb + (area->y1 + y) * DISP_HOR_RES + area->x1, src + y * w, w * sizeof(uint32_t));
    }
    present();
    lv_display_flush_ready(disp);
}

static void mouse_read(lv_indev_t *indev, lv_indev_data_t *data) {
    (void)indev;
#else
static void disp_flush(lv_disp_drv_t *drv, const lv_area_t *area, lv_color_t *color_p) {
    int32_t w = lv_area_get_width(area);
    int32_t h = lv_area_get_height(area);
    for (int32_t y = 0; y < h; y++) {
        for (int32_t x = 0; x < w; x++) {
            fb[(area->y1 + y) * DISP_HOR_RES + area->x1 + x] = lv_color_to32(*color_p);
            color_p++;
        }
    }
    present();
    lv_disp_flush_ready(drv);
}

static void mouse_read(lv_indev_drv_t *drv, lv_indev_data_t *data) {
    (void)drv;
#endif
    int x, y;
    uint32_t buttons = SDL_GetMouseState(&x, &y);
    data->state = (buttons & SDL_BUTTON_LMASK) ? LV_INDEV_STATE_PRESSED : LV_INDEV_STATE_RELEASED;
    data->point.x = x;
    data->point.y = y;
}

static void main_loop(void) {
    SDL_Event event;
    while (SDL_PollEvent(&event)) {
        if (event.type == SDL_QUIT) {
            emscripten_cancel_main_loop();
            return;
        }
    }
#if LVGL_V9_OR_LATER
    lv_timer_handler();
#else
    lv_task_handler();
#endif
    lv_tick_inc(5);
}

int main(int argc, char *argv[]) {
    (void)argc;
    (void)argv;

    if (SDL_Init(SDL_INIT_VIDEO) != 0) {
        printf("SDL_Init Error: %s\\n", SDL_GetError());
        return 1;
    }

    window = SDL_CreateWindow("LVGL Preview", SDL_WINDOWPOS_CENTERED, SDL_WINDOWPOS_CENTERED,
                              DISP_HOR_RES, DISP_VER_RES, SDL_WINDOW_SHOWN);
    renderer = window ? SDL_CreateRenderer(window, -1, SDL_RENDERER_ACCELERATED) : NULL;
    texture = renderer ? SDL_CreateTexture(renderer, SDL_PIXELFORMAT_ARGB8888,
                                           SDL_TEXTUREACCESS_STATIC, DISP_HOR_RES, DISP_VER_RES) : NULL;
    fb = calloc(DISP_HOR_RES * DISP_VER_RES, sizeof(uint32_t));
    if (!texture || !fb) {
        printf("SDL setup failed: %s\\n", SDL_GetError());
        SDL_Quit();
        return 1;
    }

    lv_init();

    size_t buf_pixels = DISP_HOR_RES * 10;
    void *buf1 = malloc(buf_pixels * sizeof(lv_color_t));
    void *buf2 = malloc(buf_pixels * sizeof(lv_color_t));
    if (!buf1 || !buf2) {
        printf("Failed to allocate draw buffers\\n");
        return 1;
    }

#if LVGL_V9_OR_LATER
    lv_display_t *disp = lv_display_create(DISP_HOR_RES, DISP_VER_RES);
    lv_display_set_flush_cb(disp, disp_flush);
    lv_display_set_buffers(disp, buf1, buf2, buf_pixels * sizeof(lv_color_t),
                           LV_DISPLAY_RENDER_MODE_PARTIAL);

    lv_indev_t *mouse = lv_indev_create();
    lv_indev_set_type(mouse, LV_INDEV_TYPE_POINTER);
    lv_indev_set_read_cb(mouse, mouse_read);
#else
    lv_disp_draw_buf_init(&draw_buf, buf1, buf2, buf_pixels);
    lv_disp_drv_init(&disp_drv);
    disp_drv.hor_res = DISP_HOR_RES;
    disp_drv.ver_res = DISP_VER_RES;
    disp_drv.flush_cb = disp_flush;
    disp_drv.draw_buf = &draw_buf;
    lv_disp_drv_register(&disp_drv);

    lv_indev_drv_init(&indev_drv);
    indev_drv.type = LV_INDEV_TYPE_POINTER;
    indev_drv.read_cb = mouse_read;
    lv_indev_drv_register(&indev_drv);
#endif

#ifdef LVGL_LIVE_PREVIEW
    lvgl_live_preview_init();
#endif

    emscripten_set_main_loop(main_loop, 0, 1);
    return 0;
}
"""


def _write(path: Path, content: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def generate_lv_conf(
    path: Path,
    width: int,
    height: int,
    memory_kb: int,
    profile: DriverProfile,
) -> Path:
    """Write lv_conf.h for the given display geometry and heap size.

    The bundled SDL driver is only enabled for profiles that do not rely on
    the external driver package.
    """
    use_sdl = 0 if profile.needs_driver_package else 1
    content = LV_CONF_TEMPLATE.substitute(
        width=width, height=height, memory_kb=memory_kb, use_sdl=use_sdl
    )
    return _write(path, content)


def generate_lv_drv_conf(path: Path, width: int, height: int) -> Path:
    """Write lv_drv_conf.h for the lv_drivers SDL backend."""
    return _write(path, LV_DRV_CONF_TEMPLATE.substitute(width=width, height=height))


def generate_main_file(path: Path) -> Path:
    """Write the emscripten entry source."""
    return _write(path, MAIN_SOURCE)
