"""
CHIP-8 VM — Instruction Handlers

The executor applies one decoded Instruction to a MachineState. Every
Op has exactly one handler in the dispatch table; the table is checked
for completeness when the executor is built.

Handler signature: handler(state, ins, keys)
  state  MachineState being mutated
  ins    decoded Instruction
  keys   normalised 16-entry keypad snapshot for this tick

Rules every handler follows:
  1. Copy operand register values into locals before any write. Vx, Vy
     and VF may be the same register.
  2. Do all bounds checks (memory ranges, stack depth) before mutating,
     so a raised fault leaves no half-applied instruction.
  3. Write the result register first and VF last, so VF holds the flag
     even when x == 0xF.
  4. Advance PC by one instruction (2) unless the handler jumps, skips
     (4) or is waiting for a key (0).
"""

import logging

from ..config import INSTRUCTION_SIZE
from ..periph.keypad import KeyWait
from . import alu
from .decoder import Op, Instruction

logger = logging.getLogger(__name__)


class Executor:

    def __init__(self):
        self._dispatch = self._build_dispatch()
        missing = [op.name for op in Op if op not in self._dispatch]
        if missing:
            raise RuntimeError(f"No handler for: {', '.join(missing)}")

    def execute(self, state, ins: Instruction, keys):
        """Run one instruction against `state`."""
        self._dispatch[ins.op](state, ins, keys)

    def _build_dispatch(self) -> dict:
        """Build Op → handler table."""
        return {
            # ── System / flow control ──
            Op.CLS:       self._op_cls,
            Op.RET:       self._op_ret,
            Op.SYS:       self._op_sys,
            Op.JP:        self._op_jp,
            Op.CALL:      self._op_call,
            Op.JP_V0:     self._op_jp_v0,

            # ── Conditional skips ──
            Op.SE_VX_KK:  self._op_se_vx_kk,
            Op.SNE_VX_KK: self._op_sne_vx_kk,
            Op.SE_VX_VY:  self._op_se_vx_vy,
            Op.SNE_VX_VY: self._op_sne_vx_vy,
            Op.SKP:       self._op_skp,
            Op.SKNP:      self._op_sknp,

            # ── Immediate ──
            Op.LD_VX_KK:  self._op_ld_vx_kk,
            Op.ADD_VX_KK: self._op_add_vx_kk,

            # ── Register ALU ──
            Op.LD_VX_VY:  self._op_ld_vx_vy,
            Op.OR:        self._op_or,
            Op.AND:       self._op_and,
            Op.XOR:       self._op_xor,
            Op.ADD_VX_VY: self._op_add_vx_vy,
            Op.SUB:       self._op_sub,
            Op.SHR:       self._op_shr,
            Op.SUBN:      self._op_subn,
            Op.SHL:       self._op_shl,

            # ── Index / random / draw ──
            Op.LD_I:      self._op_ld_i,
            Op.RND:       self._op_rnd,
            Op.DRW:       self._op_drw,

            # ── Timers / keypad / memory transfer ──
            Op.LD_VX_DT:  self._op_ld_vx_dt,
            Op.LD_VX_K:   self._op_ld_vx_k,
            Op.LD_DT_VX:  self._op_ld_dt_vx,
            Op.LD_ST_VX:  self._op_ld_st_vx,
            Op.ADD_I_VX:  self._op_add_i_vx,
            Op.LD_F_VX:   self._op_ld_f_vx,
            Op.LD_B_VX:   self._op_ld_b_vx,
            Op.LD_I_VX:   self._op_ld_i_vx,
            Op.LD_VX_I:   self._op_ld_vx_i,
        }

    # ══════════════════════════════════════════════
    # PC helpers
    # ══════════════════════════════════════════════

    @staticmethod
    def _next(state):
        state.regs.PC = (state.regs.PC + INSTRUCTION_SIZE) & 0xFFFF

    @staticmethod
    def _skip_if(state, condition: bool):
        step = 2 * INSTRUCTION_SIZE if condition else INSTRUCTION_SIZE
        state.regs.PC = (state.regs.PC + step) & 0xFFFF

    # ══════════════════════════════════════════════
    # System / flow control
    # ══════════════════════════════════════════════

    def _op_cls(self, state, ins, keys):
        state.display.clear()
        self._next(state)

    def _op_ret(self, state, ins, keys):
        state.regs.PC = state.regs.pop()

    def _op_sys(self, state, ins, keys):
        """0nnn: treated as a plain jump to nnn."""
        state.regs.PC = ins.nnn

    def _op_jp(self, state, ins, keys):
        state.regs.PC = ins.nnn

    def _op_call(self, state, ins, keys):
        # push raises StackOverflow before PC moves
        state.regs.push(state.regs.PC + INSTRUCTION_SIZE)
        state.regs.PC = ins.nnn

    def _op_jp_v0(self, state, ins, keys):
        """Bnnn: PC = nnn + V0. An out-of-range target faults on the next fetch."""
        state.regs.PC = ins.nnn + state.regs.V[0]

    # ══════════════════════════════════════════════
    # Conditional skips
    # ══════════════════════════════════════════════

    def _op_se_vx_kk(self, state, ins, keys):
        self._skip_if(state, state.regs.V[ins.x] == ins.kk)

    def _op_sne_vx_kk(self, state, ins, keys):
        self._skip_if(state, state.regs.V[ins.x] != ins.kk)

    def _op_se_vx_vy(self, state, ins, keys):
        self._skip_if(state, state.regs.V[ins.x] == state.regs.V[ins.y])

    def _op_sne_vx_vy(self, state, ins, keys):
        self._skip_if(state, state.regs.V[ins.x] != state.regs.V[ins.y])

    def _op_skp(self, state, ins, keys):
        self._skip_if(state, keys[state.regs.V[ins.x] & 0xF])

    def _op_sknp(self, state, ins, keys):
        self._skip_if(state, not keys[state.regs.V[ins.x] & 0xF])

    # ══════════════════════════════════════════════
    # Immediate load / add
    # ══════════════════════════════════════════════

    def _op_ld_vx_kk(self, state, ins, keys):
        state.regs.V[ins.x] = ins.kk
        self._next(state)

    def _op_add_vx_kk(self, state, ins, keys):
        """7xkk: wraps, VF untouched."""
        state.regs.V[ins.x] = alu.add_wrap8(state.regs.V[ins.x], ins.kk)
        self._next(state)

    # ══════════════════════════════════════════════
    # Register ALU (8xyN)
    # ══════════════════════════════════════════════

    def _op_ld_vx_vy(self, state, ins, keys):
        state.regs.V[ins.x] = state.regs.V[ins.y]
        self._next(state)

    def _logic(self, state, ins, fn):
        V = state.regs.V
        V[ins.x] = fn(V[ins.x], V[ins.y])
        if state.config.logic_resets_vf:
            state.regs.VF = 0
        self._next(state)

    def _op_or(self, state, ins, keys):
        self._logic(state, ins, alu.or8)

    def _op_and(self, state, ins, keys):
        self._logic(state, ins, alu.and8)

    def _op_xor(self, state, ins, keys):
        self._logic(state, ins, alu.xor8)

    def _op_add_vx_vy(self, state, ins, keys):
        vx, vy = state.regs.V[ins.x], state.regs.V[ins.y]
        result, carry = alu.add8(vx, vy)
        state.regs.V[ins.x] = result
        state.regs.VF = carry
        self._next(state)

    def _op_sub(self, state, ins, keys):
        """8xy5: Vx = Vx - Vy, VF = NOT borrow."""
        vx, vy = state.regs.V[ins.x], state.regs.V[ins.y]
        result, no_borrow = alu.sub8(vx, vy)
        state.regs.V[ins.x] = result
        state.regs.VF = no_borrow
        self._next(state)

    def _op_subn(self, state, ins, keys):
        """8xy7: Vx = Vy - Vx, VF = NOT borrow."""
        vx, vy = state.regs.V[ins.x], state.regs.V[ins.y]
        result, no_borrow = alu.sub8(vy, vx)
        state.regs.V[ins.x] = result
        state.regs.VF = no_borrow
        self._next(state)

    def _shift_source(self, state, ins) -> int:
        if state.config.shift_uses_vy:
            return state.regs.V[ins.y]
        return state.regs.V[ins.x]

    def _op_shr(self, state, ins, keys):
        result, out = alu.shr8(self._shift_source(state, ins))
        state.regs.V[ins.x] = result
        state.regs.VF = out
        self._next(state)

    def _op_shl(self, state, ins, keys):
        result, out = alu.shl8(self._shift_source(state, ins))
        state.regs.V[ins.x] = result
        state.regs.VF = out
        self._next(state)

    # ══════════════════════════════════════════════
    # Index / random / draw
    # ══════════════════════════════════════════════

    def _op_ld_i(self, state, ins, keys):
        state.regs.I = ins.nnn
        self._next(state)

    def _op_rnd(self, state, ins, keys):
        state.regs.V[ins.x] = state.next_random() & ins.kk
        self._next(state)

    def _op_drw(self, state, ins, keys):
        """Dxyn: XOR n sprite rows from [I] at (Vx, Vy); VF = collision."""
        x, y = state.regs.V[ins.x], state.regs.V[ins.y]
        sprite = state.mem.read_block(state.regs.I, ins.n)
        collision = state.display.draw_sprite(x, y, sprite)
        state.regs.VF = collision
        self._next(state)

    # ══════════════════════════════════════════════
    # Timers / keypad
    # ══════════════════════════════════════════════

    def _op_ld_vx_dt(self, state, ins, keys):
        state.regs.V[ins.x] = state.timer.delay
        self._next(state)

    def _op_ld_vx_k(self, state, ins, keys):
        """Fx0A: PC stays put; the step driver resolves the wait."""
        state.key_wait = KeyWait(register=ins.x)
        logger.debug(f"${state.regs.PC:04X}: waiting for key -> V{ins.x:X}")

    def _op_ld_dt_vx(self, state, ins, keys):
        state.timer.set_delay(state.regs.V[ins.x])
        self._next(state)

    def _op_ld_st_vx(self, state, ins, keys):
        state.timer.set_sound(state.regs.V[ins.x])
        self._next(state)

    # ══════════════════════════════════════════════
    # Index arithmetic / block memory
    # ══════════════════════════════════════════════

    def _op_add_i_vx(self, state, ins, keys):
        state.regs.I = (state.regs.I + state.regs.V[ins.x]) & 0xFFFF
        self._next(state)

    def _op_ld_f_vx(self, state, ins, keys):
        state.regs.I = state.font_address(state.regs.V[ins.x])
        self._next(state)

    def _op_ld_b_vx(self, state, ins, keys):
        """Fx33: BCD of Vx at I, I+1, I+2. I is not moved."""
        state.mem.write_block(state.regs.I, alu.bcd3(state.regs.V[ins.x]))
        self._next(state)

    def _op_ld_i_vx(self, state, ins, keys):
        """Fx55: store V0..Vx at I..I+x."""
        count = ins.x + 1
        state.mem.write_block(state.regs.I, state.regs.V[:count])
        if state.config.index_increment:
            state.regs.I = (state.regs.I + count) & 0xFFFF
        self._next(state)

    def _op_ld_vx_i(self, state, ins, keys):
        """Fx65: load V0..Vx from I..I+x."""
        count = ins.x + 1
        state.regs.V[:count] = state.mem.read_block(state.regs.I, count)
        if state.config.index_increment:
            state.regs.I = (state.regs.I + count) & 0xFFFF
        self._next(state)
