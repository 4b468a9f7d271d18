"""
どこで: `engine.render.shader`。
何を: メッシュ描画用の GLSL（Lambert 拡散 + 環境光、任意のテクスチャ）と ModernGL プログラム生成。
なぜ: シェーダ文字列と uniform 名をレンダラ本体から分け、ダミーコンテキストで差し替えやすくするため。
"""

from __future__ import annotations

from typing import Any

MAX_DIRECTIONAL_LIGHTS = 4
MAX_POINT_LIGHTS = 4

VERTEX_SHADER = """
#version 330
uniform mat4 u_model;
uniform mat4 u_view;
uniform mat4 u_projection;
uniform mat3 u_normal_matrix;

in vec3 in_position;
in vec3 in_normal;
in vec2 in_uv;

out vec3 v_world;
out vec3 v_normal;
out vec2 v_uv;

void main() {
    vec4 world = u_model * vec4(in_position, 1.0);
    v_world = world.xyz;
    v_normal = normalize(u_normal_matrix * in_normal);
    v_uv = in_uv;
    gl_Position = u_projection * u_view * world;
}
"""

FRAGMENT_SHADER = f"""
#version 330
#define MAX_DIR {MAX_DIRECTIONAL_LIGHTS}
#define MAX_POINT {MAX_POINT_LIGHTS}

uniform vec3 u_color;
uniform float u_opacity;
uniform vec3 u_emissive;
uniform bool u_lit;
uniform bool u_use_map;
uniform sampler2D u_map;

uniform vec3 u_ambient;
uniform int u_dir_count;
uniform vec3 u_dir_direction[MAX_DIR];
uniform vec3 u_dir_color[MAX_DIR];
uniform int u_point_count;
uniform vec3 u_point_position[MAX_POINT];
uniform vec3 u_point_color[MAX_POINT];
uniform vec2 u_point_falloff[MAX_POINT];

in vec3 v_world;
in vec3 v_normal;
in vec2 v_uv;

out vec4 f_color;

void main() {{
    vec4 base = vec4(u_color, u_opacity);
    if (u_use_map) {{
        base *= texture(u_map, v_uv);
    }}
    vec3 rgb = base.rgb;
    if (u_lit) {{
        vec3 n = normalize(v_normal);
        if (!gl_FrontFacing) {{
            n = -n;
        }}
        vec3 light = u_ambient;
        for (int i = 0; i < u_dir_count; ++i) {{
            light += u_dir_color[i] * max(dot(n, -u_dir_direction[i]), 0.0);
        }}
        for (int i = 0; i < u_point_count; ++i) {{
            vec3 to_light = u_point_position[i] - v_world;
            float d = length(to_light);
            float atten = 1.0;
            if (u_point_falloff[i].x > 0.0) {{
                atten = pow(clamp(1.0 - d / u_point_falloff[i].x, 0.0, 1.0), u_point_falloff[i].y);
            }}
            light += u_point_color[i] * atten * max(dot(n, to_light / max(d, 1e-6)), 0.0);
        }}
        rgb = rgb * light + u_emissive;
    }}
    f_color = vec4(rgb, base.a);
}}
"""


class Shader:
    @staticmethod
    def create_shader(ctx: Any) -> Any:
        """ModernGL プログラムを生成する。"""
        return ctx.program(vertex_shader=VERTEX_SHADER, fragment_shader=FRAGMENT_SHADER)


__all__ = ["Shader", "MAX_DIRECTIONAL_LIGHTS", "MAX_POINT_LIGHTS"]
